"""CLI entry point: python -m event_link.cli import"""

import argparse
import asyncio
import json
import sys

import structlog

from event_link.config.settings import get_settings
from event_link.db.engine import dispose_engine
from event_link.db.session import get_session_factory
from event_link.dedup.listing import dedupe
from event_link.dedup.normalizer import load_variant_config
from event_link.importer.ticketmaster import MAX_PAGE_SIZE, fetch_events_multiple_cities
from event_link.logging_config import configure_logging
from event_link.resolver.identity import record_imports


async def run_import(cities: list[str], size: int, record: bool, collapse: bool) -> int:
    """Fetch provider listings, optionally cache them, and print JSON lines.

    Returns:
        Number of records printed.
    """
    log = structlog.get_logger()
    settings = get_settings()

    records = await fetch_events_multiple_cities(cities or None, size, settings=settings)
    log.info("import_fetched", cities=cities or settings.default_cities, records=len(records))

    if record:
        try:
            inserted = await record_imports(get_session_factory(), records)
        finally:
            await dispose_engine()
        log.info("import_recorded", inserted=inserted)

    if collapse:
        keywords = tuple(load_variant_config(settings.variant_keywords_path).keywords)
        records = dedupe(records, keywords)

    for rec in records:
        sys.stdout.write(json.dumps(rec.to_dict(), ensure_ascii=False) + "\n")
    return len(records)


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="event_link.cli",
        description="Event Link CLI",
    )
    subparsers = parser.add_subparsers(dest="command")

    import_parser = subparsers.add_parser("import", help="Import provider events as JSON lines")
    import_parser.add_argument(
        "--city",
        action="append",
        default=[],
        help="City to query; repeat for several (default: configured cities)",
    )
    import_parser.add_argument(
        "--size",
        type=int,
        default=None,
        help=f"Events per city, at most {MAX_PAGE_SIZE} (default: configured size)",
    )
    import_parser.add_argument(
        "--record",
        action="store_true",
        help="Cache the listings in the api_events mapping table",
    )
    import_parser.add_argument(
        "--no-dedupe",
        action="store_true",
        help="Print ticket-tier variants instead of collapsing them",
    )

    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "import":
        settings = get_settings()
        configure_logging(json_output=settings.log_json, log_level=settings.log_level)
        size = args.size or settings.default_size
        asyncio.run(run_import(args.city, size, args.record, not args.no_dedupe))


if __name__ == "__main__":
    main()

"""structlog + stdlib logging setup shared by the API and the CLI.

Library loggers (uvicorn, SQLAlchemy, httpx) go through the same
``ProcessorFormatter`` as ``structlog.get_logger()`` calls, so every line
has the same shape: JSON in production, coloured console output locally.
"""

import logging
import sys
from collections.abc import Iterable

import structlog

# httpx logs each request URL at INFO, and provider URLs carry the api key
QUIET_LOGGERS = ("httpx", "httpcore")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    json_output: bool = True,
    log_level: str = "INFO",
    quiet_loggers: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        json_output: Render JSON lines; ``False`` uses the console renderer.
        log_level: Root level name, e.g. ``"DEBUG"`` or ``"WARNING"``.
        quiet_loggers: Loggers capped at WARNING regardless of ``log_level``.
    """
    processors = _shared_processors()
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=processors,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))

    for name in quiet_loggers:
        logging.getLogger(name).setLevel(logging.WARNING)

"""REST API endpoint for provider listings."""

from __future__ import annotations

import httpx
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_link.api.deps import get_app_settings, get_db_factory, get_http_client
from event_link.api.schemas import ExternalEventSchema, ExternalEventsResponse
from event_link.config.settings import Settings
from event_link.dedup.listing import dedupe
from event_link.dedup.normalizer import load_variant_config
from event_link.importer.ticketmaster import MAX_PAGE_SIZE, fetch_events_multiple_cities
from event_link.resolver.identity import record_imports

router = APIRouter(prefix="/api/external-events", tags=["external-events"])


@router.get("", response_model=ExternalEventsResponse)
async def list_external_events(
    city: list[str] = Query(default=[]),
    size: int = Query(default=30, ge=1, le=MAX_PAGE_SIZE),
    collapse_variants: bool = Query(default=True, alias="dedupe"),
    record: bool = False,
    settings: Settings = Depends(get_app_settings),
    client: httpx.AsyncClient = Depends(get_http_client),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_factory),
) -> ExternalEventsResponse:
    """Fetch provider listings for one or more cities.

    Provider outages yield an empty list, never an error.  With
    ``record=true`` the listings are cached in the mapping table (unlinked).
    """
    records = await fetch_events_multiple_cities(
        city or settings.default_cities, size, client=client, settings=settings
    )

    recorded = await record_imports(session_factory, records) if record else None

    if collapse_variants:
        keywords = tuple(load_variant_config(settings.variant_keywords_path).keywords)
        records = dedupe(records, keywords)

    items = [ExternalEventSchema.model_validate(r.to_dict()) for r in records]
    return ExternalEventsResponse(count=len(items), items=items, recorded=recorded)

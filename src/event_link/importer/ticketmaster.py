"""Ticketmaster Discovery API importer.

Fetches music listings per city and turns them into
:class:`~event_link.importer.records.ExternalEventRecord` values.  All
knowledge of the Ticketmaster payload format lives in this module.

Importing is best-effort: a missing API key, a non-2xx answer, a transport
error or a timeout all degrade to an empty list for the affected city.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import math
import re
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

import httpx
import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field

from event_link.categories import normalize_event_category
from event_link.config.settings import Settings, get_settings
from event_link.errors import ProviderUnavailable
from event_link.importer.records import ExternalEventRecord

logger = structlog.get_logger()

SOURCE = "ticketmaster"
MAX_PAGE_SIZE = 200
CLASSIFICATION_NAME = "music"

# Placeholders for fields the provider leaves out
DEFAULT_TIME = "20:00"
DEFAULT_VENUE_NAME = "Venue"
DEFAULT_GENRE = "Música"

# Only music classifications are queried, so every listing lands in one category
CATEGORY = normalize_event_category("musica")

_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})")


class _Named(BaseModel):
    name: str | None = None
    model_config = ConfigDict(extra="allow")


class _Country(BaseModel):
    name: str | None = None
    countryCode: str | None = None
    model_config = ConfigDict(extra="allow")


class _Image(BaseModel):
    url: str | None = None
    width: float | None = None
    model_config = ConfigDict(extra="allow")


class _Start(BaseModel):
    localDate: str | None = None
    localTime: str | None = None
    model_config = ConfigDict(extra="allow")


class _Dates(BaseModel):
    start: _Start | None = None
    model_config = ConfigDict(extra="allow")


class _GeoPoint(BaseModel):
    latitude: str | float | None = None
    longitude: str | float | None = None
    model_config = ConfigDict(extra="allow")


class _Venue(BaseModel):
    name: str | None = None
    city: _Named | None = None
    country: _Country | None = None
    location: _GeoPoint | None = None
    model_config = ConfigDict(extra="allow")


class _Embedded(BaseModel):
    venues: list[_Venue] | None = None
    model_config = ConfigDict(extra="allow")


class _Classification(BaseModel):
    genre: _Named | None = None
    subGenre: _Named | None = None
    model_config = ConfigDict(extra="allow")


class TicketmasterEvent(BaseModel):
    """The subset of a Discovery API event the importer reads."""

    id: str | int
    name: str | None = None
    description: str | None = None
    info: str | None = None
    url: str | None = None
    dates: _Dates | None = None
    images: list[_Image] | None = None
    embedded: _Embedded | None = Field(None, alias="_embedded")
    classifications: list[_Classification] | None = None
    model_config = ConfigDict(extra="allow", populate_by_name=True)


def parse_coordinate(value: object) -> float | None:
    """Parse a provider coordinate; anything unusable becomes ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    return result if math.isfinite(result) else None


def _local_date(value: str | None, today: dt.date) -> dt.date:
    if not value:
        return today
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        return today


def _local_time(value: str | None) -> str:
    match = _TIME_RE.match(value or "")
    if not match:
        return DEFAULT_TIME
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return DEFAULT_TIME
    return f"{hour:02d}:{minute:02d}"


def _largest_image(images: list[_Image] | None) -> str | None:
    if not images:
        return None
    # max() keeps the first of equally wide images
    return max(images, key=lambda img: img.width or 0).url


def _genre(classifications: list[_Classification] | None) -> str:
    first = classifications[0] if classifications else None
    if first is None:
        return DEFAULT_GENRE
    for named in (first.subGenre, first.genre):
        if named is not None and named.name:
            return named.name
    return DEFAULT_GENRE


def format_ticketmaster_event(
    item: dict, *, today: dt.date | None = None
) -> ExternalEventRecord:
    """Normalize a single Discovery API event.

    Args:
        item: One entry of ``_embedded.events``.
        today: Date used when the provider sends no ``localDate``.
            Defaults to the current local date.

    Raises:
        pydantic.ValidationError: If the item has no usable ``id``.
    """
    event = TicketmasterEvent.model_validate(item)
    today = today or dt.date.today()

    start = event.dates.start if event.dates and event.dates.start else _Start()
    venues = (event.embedded.venues if event.embedded else None) or []
    venue = venues[0] if venues else _Venue()

    venue_name = venue.name or DEFAULT_VENUE_NAME
    city = venue.city.name if venue.city and venue.city.name else ""
    location = f"{venue_name}, {city}" if city else venue_name
    country = ""
    if venue.country is not None:
        country = venue.country.countryCode or venue.country.name or ""

    title = event.name or ""
    geo = venue.location or _GeoPoint()

    return ExternalEventRecord(
        source=SOURCE,
        external_id=str(event.id),
        title=title,
        description=event.description or event.info or f"Event: {title}",
        date=_local_date(start.localDate, today),
        time_start=_local_time(start.localTime),
        venue_name=venue_name,
        location=location,
        city=city,
        country=country,
        latitude=parse_coordinate(geo.latitude),
        longitude=parse_coordinate(geo.longitude),
        image=_largest_image(event.images),
        url=event.url or None,
        category_slug=CATEGORY.slug,
        category_name=CATEGORY.name,
        genre=_genre(event.classifications),
    )


def format_ticketmaster_events(
    events: Iterable[dict], *, today: dt.date | None = None
) -> list[ExternalEventRecord]:
    """Normalize a list of Discovery API events, skipping unusable items."""
    records: list[ExternalEventRecord] = []
    for item in events:
        try:
            records.append(format_ticketmaster_event(item, today=today))
        except pydantic.ValidationError as exc:
            logger.warning("provider_event_skipped", provider=SOURCE, errors=exc.error_count())
    return records


@asynccontextmanager
async def _client_scope(
    client: httpx.AsyncClient | None, settings: Settings
) -> AsyncIterator[httpx.AsyncClient]:
    """Use the caller's client, or open a short-lived one."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=httpx.Timeout(settings.provider_timeout_seconds)) as owned:
        yield owned


async def _get_events_page(
    client: httpx.AsyncClient, url: str, params: dict, timeout: float
) -> list[dict]:
    """GET one events page and return the raw ``_embedded.events`` list.

    Raises:
        ProviderUnavailable: On timeout, transport error, non-2xx status or
            a body that is not JSON.
    """
    try:
        response = await client.get(
            url,
            params=params,
            headers={"Accept": "application/json"},
            timeout=timeout,
        )
    except httpx.HTTPError as exc:
        # Not str(exc): transport errors may echo the URL, which carries the api key
        raise ProviderUnavailable(type(exc).__name__) from exc

    if not response.is_success:
        raise ProviderUnavailable(f"HTTP {response.status_code}")

    try:
        data = response.json()
    except ValueError as exc:
        raise ProviderUnavailable("invalid JSON body") from exc

    if not isinstance(data, dict):
        return []
    embedded = data.get("_embedded") or {}
    events = embedded.get("events") if isinstance(embedded, dict) else None
    return [e for e in events if isinstance(e, dict)] if isinstance(events, list) else []


async def fetch_events_by_city(
    city: str = "Madrid",
    size: int = 50,
    *,
    api_key: str | None = None,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
    today: dt.date | None = None,
) -> list[ExternalEventRecord]:
    """Fetch music events for one city.

    Candidate endpoints from ``settings.ticketmaster_api_urls`` are tried in
    order; the first one that answers wins.  Never raises for provider
    problems.

    Args:
        city: City name as understood by the provider (e.g. ``"Madrid"``).
        size: Requested number of events, capped at :data:`MAX_PAGE_SIZE`.
        api_key: Overrides ``settings.ticketmaster_api_key``.
        client: Shared HTTP client; a temporary one is created if omitted.
        settings: Overrides the cached application settings.
        today: Date used for listings without a start date.

    Returns:
        Normalized records, or an empty list when the provider is unavailable.
    """
    settings = settings or get_settings()
    api_key = api_key or settings.ticketmaster_api_key
    log = logger.bind(provider=SOURCE, city=city)

    if not api_key:
        log.warning("provider_api_key_missing")
        return []

    params = {
        "apikey": api_key,
        "city": city,
        "classificationName": CLASSIFICATION_NAME,
        "size": max(1, min(int(size), MAX_PAGE_SIZE)),
        "countryCode": settings.ticketmaster_country_code,
    }

    async with _client_scope(client, settings) as http:
        for url in settings.ticketmaster_api_urls:
            try:
                raw_events = await _get_events_page(
                    http, url, params, settings.provider_timeout_seconds
                )
            except ProviderUnavailable as exc:
                log.warning("provider_request_failed", endpoint=url, reason=str(exc))
                continue
            records = format_ticketmaster_events(raw_events, today=today)
            log.info("provider_events_fetched", endpoint=url, count=len(records))
            return records

    log.error("provider_unavailable", endpoints_tried=len(settings.ticketmaster_api_urls))
    return []


async def fetch_events_multiple_cities(
    cities: Iterable[str] | None = None,
    size_per_city: int | None = None,
    *,
    api_key: str | None = None,
    client: httpx.AsyncClient | None = None,
    settings: Settings | None = None,
    today: dt.date | None = None,
) -> list[ExternalEventRecord]:
    """Fetch several cities concurrently and concatenate results in city order.

    A failing city contributes nothing; the other cities are unaffected.
    """
    settings = settings or get_settings()
    city_list = list(cities) if cities is not None else list(settings.default_cities)
    size = size_per_city or settings.default_size

    async with _client_scope(client, settings) as http:
        results = await asyncio.gather(
            *(
                fetch_events_by_city(
                    city, size, api_key=api_key, client=http, settings=settings, today=today
                )
                for city in city_list
            ),
            return_exceptions=True,
        )

    records: list[ExternalEventRecord] = []
    for city, result in zip(city_list, results):
        if isinstance(result, Exception):
            logger.error("provider_city_failed", provider=SOURCE, city=city, error=repr(result))
            continue
        if isinstance(result, BaseException):
            raise result
        records.extend(result)
    return records

"""Idempotent linking of provider identities to internal events.

The ``api_events`` table maps ``(source, external_id)`` to an internal
``events`` row.  Resolution creates the internal row at most once per pair:

1. A linked mapping is returned as-is (no writes).
2. Otherwise a new internal event is inserted and the mapping is inserted or
   linked in the same transaction.  Cached display fields are only written
   where they are still NULL.
3. A unique-constraint violation (or a mapping that got linked in between)
   means another writer won.  Our transaction is rolled back and the
   mapping is read again, so every caller converges on the first id.
"""

from __future__ import annotations

import datetime as dt
from collections.abc import Iterable, Mapping

import pydantic
import sqlalchemy as sa
import structlog
from pydantic import BaseModel, ConfigDict, field_validator
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_link.categories import normalize_event_category
from event_link.db.guard import store_guard
from event_link.errors import ConflictRace, StoreUnavailable, UnlinkedEventError, ValidationError
from event_link.importer.records import ExternalEventRecord
from event_link.models.event_link import CACHED_FIELDS, EventLink
from event_link.models.internal_event import InternalEvent

logger = structlog.get_logger()

MAX_LINK_ATTEMPTS = 3


class EventPayload(BaseModel):
    """Normalized fields used to create an internal event."""

    title: str | None = None
    description: str | None = None
    image: str | None = None
    event_at: dt.datetime | None = None
    location: str | None = None
    venue_name: str | None = None
    city: str | None = None
    country: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    url: str | None = None
    category: str | None = None
    model_config = ConfigDict(extra="ignore")

    @field_validator("event_at", mode="before")
    @classmethod
    def _date_only(cls, value: object) -> object:
        if isinstance(value, dt.date) and not isinstance(value, dt.datetime):
            return dt.datetime.combine(value, dt.time())
        if isinstance(value, str) and len(value) == 10:
            return dt.datetime.fromisoformat(value)
        return value


def is_numeric_id(value: object) -> bool:
    """True iff ``value`` is a non-empty string of ASCII digits (an internal id)."""
    text = "" if value is None else str(value)
    return text.isascii() and text.isdigit()


def coerce_payload(payload: EventPayload | Mapping | None) -> EventPayload:
    """Validate a payload before anything is written.

    Raises:
        ValidationError: If the payload is malformed or has no title.
    """
    if isinstance(payload, EventPayload):
        data = payload
    else:
        try:
            data = EventPayload.model_validate(payload or {})
        except pydantic.ValidationError as exc:
            raise ValidationError(f"malformed event payload: {exc.error_count()} error(s)") from exc

    if not data.title or not data.title.strip():
        raise ValidationError("event payload requires a title")
    return data


def _cached_values(data: EventPayload) -> dict:
    return {field: getattr(data, field) for field in CACHED_FIELDS}


def _coalesce_update(link_id: int, values: dict) -> sa.Update:
    """UPDATE that only fills cached fields which are still NULL."""
    return (
        sa.update(EventLink)
        .where(EventLink.id == link_id)
        .values({field: sa.func.coalesce(getattr(EventLink, field), value) for field, value in values.items()})
        .execution_options(synchronize_session=False)
    )


async def find_link(session: AsyncSession, source: str, external_id: str) -> EventLink | None:
    result = await session.execute(
        sa.select(EventLink).where(
            EventLink.source == source,
            EventLink.external_id == external_id,
        )
    )
    return result.scalar_one_or_none()


async def _link_once(
    session_factory: async_sessionmaker[AsyncSession],
    source: str,
    external_id: str,
    payload: EventPayload | Mapping | None,
) -> tuple[int, bool]:
    """Run one lookup -> create -> link transaction.

    Returns:
        Tuple of (internal event id, whether this call created it).

    Raises:
        ConflictRace: If another writer linked the pair first.
    """
    async with session_factory() as session, session.begin():
        link = await find_link(session, source, external_id)
        if link is not None and link.event_id is not None:
            return link.event_id, False

        data = coerce_payload(payload)
        event = InternalEvent(
            title=data.title.strip(),
            description=data.description,
            image=data.image,
            event_at=data.event_at,
            location=data.location,
            venue_name=data.venue_name,
            city=data.city,
            country=data.country,
            latitude=data.latitude,
            longitude=data.longitude,
            url=data.url,
            type=normalize_event_category(data.category).slug,
        )
        session.add(event)
        await session.flush()
        event_id = event.id

        values = _cached_values(data)
        if link is None:
            session.add(EventLink(source=source, external_id=external_id, event_id=event_id, **values))
            try:
                await session.flush()
            except sa_exc.IntegrityError as exc:
                raise ConflictRace(f"{source}:{external_id} inserted concurrently") from exc
        else:
            result = await session.execute(
                _coalesce_update(link.id, values)
                .where(EventLink.event_id.is_(None))
                .values(event_id=event_id)
            )
            if result.rowcount != 1:
                raise ConflictRace(f"{source}:{external_id} linked concurrently")

        return event_id, True


async def resolve_event_id(
    session_factory: async_sessionmaker[AsyncSession],
    source: str,
    external_id: str,
    payload: EventPayload | Mapping | None,
) -> int:
    """Map ``(source, external_id)`` to an internal event id, creating it once.

    No content-based matching is attempted: the same real-world event seen
    under two external ids gets two internal rows.

    Args:
        session_factory: Factory for sessions on the event store.
        source: Provider tag, e.g. ``"ticketmaster"``.
        external_id: Provider-assigned event id.
        payload: Normalized fields for the internal row (see :class:`EventPayload`).

    Returns:
        The internal event id.

    Raises:
        ValidationError: The pair is unlinked and ``payload`` has no title.
            Nothing is written.
        StoreUnavailable: The store could not be reached.
    """
    log = logger.bind(source=source, external_id=external_id)
    for attempt in range(1, MAX_LINK_ATTEMPTS + 1):
        try:
            async with store_guard():
                event_id, created = await _link_once(session_factory, source, external_id, payload)
        except ConflictRace:
            log.info("link_conflict_recovered", attempt=attempt)
            continue
        if created:
            log.info("event_linked", event_id=event_id)
        return event_id

    raise StoreUnavailable(f"{source}:{external_id} did not settle after {MAX_LINK_ATTEMPTS} attempts")


async def lookup_event_id(
    session_factory: async_sessionmaker[AsyncSession], source: str, external_id: str
) -> int | None:
    """Return the linked internal id, or ``None`` if the pair is not linked yet."""
    async with store_guard():
        async with session_factory() as session:
            link = await find_link(session, source, external_id)
    return link.event_id if link is not None else None


async def normalize_event_id(
    session_factory: async_sessionmaker[AsyncSession],
    raw_id: str | int,
    *,
    source: str | None = None,
    external_id: str | None = None,
    payload: EventPayload | Mapping | None = None,
) -> int:
    """Turn an id from a request path into an internal event id.

    Digit-only ids are internal and used as-is.  Anything else is an external
    id that needs a ``source``; with a ``payload`` the pair is resolved
    (created on first use), without one it must already be linked.

    Raises:
        ValidationError: External id without a source.
        UnlinkedEventError: External id that is not linked and no payload given.
    """
    if is_numeric_id(raw_id):
        return int(raw_id)

    external_id = external_id or str(raw_id)
    if not source:
        raise ValidationError("external event ids need a source")

    if payload is not None:
        return await resolve_event_id(session_factory, source, external_id, payload)

    event_id = await lookup_event_id(session_factory, source, external_id)
    if event_id is None:
        raise UnlinkedEventError(source, external_id)
    return event_id


async def record_imports(
    session_factory: async_sessionmaker[AsyncSession],
    records: Iterable[ExternalEventRecord],
) -> int:
    """Cache imported records in ``api_events`` without linking them.

    New pairs get an unlinked mapping row; existing rows only have their
    NULL cached fields filled.  ``event_id`` is never touched.

    Returns:
        Number of mapping rows inserted.
    """
    batch = list(records)
    for attempt in range(1, MAX_LINK_ATTEMPTS + 1):
        try:
            async with store_guard():
                inserted = await _record_batch(session_factory, batch)
        except sa_exc.IntegrityError:
            # A resolver inserted one of the pairs meanwhile; the retry updates it instead
            logger.info("import_conflict_retry", attempt=attempt, records=len(batch))
            continue
        logger.info("imports_recorded", records=len(batch), inserted=inserted)
        return inserted

    raise StoreUnavailable(f"import batch did not settle after {MAX_LINK_ATTEMPTS} attempts")


async def _record_batch(
    session_factory: async_sessionmaker[AsyncSession], batch: list[ExternalEventRecord]
) -> int:
    inserted = 0
    async with session_factory() as session, session.begin():
        for record in batch:
            values = _cached_values(EventPayload.model_validate(record.to_payload()))
            link = await find_link(session, record.source, record.external_id)
            if link is None:
                session.add(EventLink(source=record.source, external_id=record.external_id, **values))
                await session.flush()
                inserted += 1
            else:
                await session.execute(_coalesce_update(link.id, values))
    return inserted

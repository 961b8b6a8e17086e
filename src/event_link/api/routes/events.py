"""REST API endpoints for internal events, linking and favorites."""

from __future__ import annotations

import sqlalchemy as sa
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from event_link.api.deps import get_db, get_db_factory
from event_link.api.schemas import (
    FavoriteRequest,
    FavoriteResponse,
    InternalEventSummary,
    ResolveRequest,
    ResolveResponse,
)
from event_link.categories import normalize_event_category
from event_link.db.guard import store_guard
from event_link.events.operations import (
    add_favorite,
    delete_event,
    list_favorite_ids,
    remove_favorite,
)
from event_link.models.internal_event import InternalEvent
from event_link.resolver.identity import EventPayload, is_numeric_id, normalize_event_id, resolve_event_id

router = APIRouter(prefix="/api/events", tags=["events"])
users_router = APIRouter(prefix="/api/users", tags=["users"])


async def _path_event_id(
    session_factory: async_sessionmaker[AsyncSession],
    raw_id: str,
    source: str | None,
    external_id: str | None,
    payload: EventPayload | None = None,
) -> int:
    """Normalize an ``{event_id}`` path segment to an internal id."""
    if not is_numeric_id(raw_id) and not source:
        raise HTTPException(
            status_code=400,
            detail="External event ids need a source, e.g. ?source=ticketmaster&external_id=...",
        )
    return await normalize_event_id(
        session_factory, raw_id, source=source, external_id=external_id, payload=payload
    )


@router.get("", response_model=list[InternalEventSummary])
async def list_events(
    db: AsyncSession = Depends(get_db),
    user_id: int | None = None,
    category: str | None = None,
) -> list[InternalEventSummary]:
    """List internal events, newest first.

    With ``user_id`` each item carries ``is_favorite`` for that user.
    """
    stmt = sa.select(InternalEvent).order_by(
        sa.nullslast(InternalEvent.event_at.desc()), InternalEvent.id.desc()
    )
    if category:
        stmt = stmt.where(InternalEvent.type == normalize_event_category(category).slug)

    async with store_guard():
        events = (await db.execute(stmt)).scalars().all()
    items = [InternalEventSummary.model_validate(e) for e in events]

    if user_id is not None:
        favorite_ids = set(await list_favorite_ids(db, user_id))
        items = [item.model_copy(update={"is_favorite": item.id in favorite_ids}) for item in items]
    return items


@router.post("/resolve", response_model=ResolveResponse)
async def resolve_external_event(
    request: ResolveRequest,
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_factory),
) -> ResolveResponse:
    """Link a provider event to an internal event, creating it on first use."""
    event_id = await resolve_event_id(
        session_factory, request.source, request.external_id, request.payload
    )
    return ResolveResponse(event_id=event_id)


@router.post("/{event_id}/favorite", response_model=FavoriteResponse)
async def favorite_event(
    event_id: str,
    request: FavoriteRequest,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_factory),
) -> FavoriteResponse:
    """Favorite an event by internal id or by provider id.

    Provider ids with a ``payload`` are linked on the fly; without one they
    must already be linked.
    """
    internal_id = await _path_event_id(
        session_factory, event_id, request.source, request.external_id, request.payload
    )
    created = await add_favorite(db, request.user_id, internal_id)
    return FavoriteResponse(event_id=internal_id, created=created)


@router.delete("/{event_id}/favorite", response_model=FavoriteResponse)
async def unfavorite_event(
    event_id: str,
    user_id: int = Query(...),
    source: str | None = None,
    external_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_factory),
) -> FavoriteResponse:
    internal_id = await _path_event_id(session_factory, event_id, source, external_id)
    await remove_favorite(db, user_id, internal_id)
    return FavoriteResponse(event_id=internal_id)


@router.delete("/{event_id}", status_code=204)
async def remove_event(
    event_id: str,
    source: str | None = None,
    external_id: str | None = None,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_db_factory),
) -> Response:
    """Delete an event together with its favorites, attendees, comments and links."""
    internal_id = await _path_event_id(session_factory, event_id, source, external_id)
    if not await delete_event(db, internal_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return Response(status_code=204)


@users_router.get("/{user_id}/favorites", response_model=list[int])
async def user_favorites(user_id: int, db: AsyncSession = Depends(get_db)) -> list[int]:
    """Return the ids of a user's favorite events."""
    return await list_favorite_ids(db, user_id)

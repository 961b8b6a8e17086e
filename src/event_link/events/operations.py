"""Write operations on internal events and their per-user rows.

Every operation runs in its own transaction and reports an unreachable
store as :class:`~event_link.errors.StoreUnavailable`.
"""

from __future__ import annotations

import sqlalchemy as sa
import structlog
from sqlalchemy import exc as sa_exc
from sqlalchemy.ext.asyncio import AsyncSession

from event_link.db.guard import store_guard
from event_link.errors import EventNotFound
from event_link.models.event_link import EventLink
from event_link.models.interactions import EventAttendee, EventComment, EventFavorite
from event_link.models.internal_event import InternalEvent

logger = structlog.get_logger()


async def delete_event(session: AsyncSession, event_id: int) -> bool:
    """Delete an internal event with its attendees, favorites, comments and links.

    All work is done within a single transaction; nothing is removed when the
    event does not exist.

    Returns:
        ``True`` if the event was deleted, ``False`` if it was not found.
    """
    async with store_guard(), session.begin():
        exists = await session.scalar(sa.select(InternalEvent.id).where(InternalEvent.id == event_id))
        if exists is None:
            return False

        # Explicitly delete child rows first (SQLite does not enforce ON DELETE CASCADE)
        for model in (EventAttendee, EventFavorite, EventComment, EventLink):
            await session.execute(sa.delete(model).where(model.event_id == event_id))
        await session.execute(sa.delete(InternalEvent).where(InternalEvent.id == event_id))

    logger.info("event_deleted", event_id=event_id)
    return True


async def find_favorite(session: AsyncSession, user_id: int, event_id: int) -> int | None:
    return await session.scalar(
        sa.select(EventFavorite.id).where(
            EventFavorite.user_id == user_id,
            EventFavorite.event_id == event_id,
        )
    )


async def add_favorite(session: AsyncSession, user_id: int, event_id: int) -> bool:
    """Mark an event as favorite for a user.  Repeated calls are no-ops.

    A concurrent favorite of the same pair that commits first wins; this
    call then reports no new row.

    Returns:
        ``True`` if a new favorite row was written.

    Raises:
        EventNotFound: If the event does not exist.
    """
    try:
        async with store_guard(), session.begin():
            if await session.get(InternalEvent, event_id) is None:
                raise EventNotFound(event_id)
            if await find_favorite(session, user_id, event_id) is not None:
                return False
            session.add(EventFavorite(user_id=user_id, event_id=event_id))
    except sa_exc.IntegrityError:
        logger.info("favorite_conflict_recovered", user_id=user_id, event_id=event_id)
        return False
    return True


async def remove_favorite(session: AsyncSession, user_id: int, event_id: int) -> None:
    async with store_guard(), session.begin():
        await session.execute(
            sa.delete(EventFavorite).where(
                EventFavorite.user_id == user_id,
                EventFavorite.event_id == event_id,
            )
        )


async def list_favorite_ids(session: AsyncSession, user_id: int) -> list[int]:
    async with store_guard():
        result = await session.execute(
            sa.select(EventFavorite.event_id)
            .where(EventFavorite.user_id == user_id)
            .order_by(EventFavorite.id)
        )
    return list(result.scalars().all())

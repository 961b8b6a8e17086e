"""Liveness endpoint that also checks the event store."""

import sqlalchemy as sa
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from event_link.api.deps import get_db
from event_link.db.guard import store_guard

router = APIRouter()


@router.get("/health")
async def health(db: AsyncSession = Depends(get_db)) -> dict:
    """Return ``{"status": "ok"}`` when the database answers, 503 otherwise."""
    async with store_guard():
        await db.execute(sa.text("SELECT 1"))
    return {"status": "ok"}

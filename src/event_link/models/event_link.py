"""Durable mapping from a provider identity to an internal event."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_link.models.base import Base

if TYPE_CHECKING:
    from event_link.models.internal_event import InternalEvent

# Display fields cached on the mapping row. Writes only ever fill NULLs.
CACHED_FIELDS = (
    "title",
    "description",
    "image",
    "event_at",
    "venue_name",
    "city",
    "country",
    "latitude",
    "longitude",
    "url",
)


class EventLink(Base):
    """Links ``(source, external_id)`` to an internal event.

    ``event_id`` stays NULL until the pair is resolved and never changes
    afterwards.  The unique constraint is what serializes concurrent
    resolutions of the same pair.
    """

    __tablename__ = "api_events"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)
    source: Mapped[str] = mapped_column(sa.String)
    external_id: Mapped[str] = mapped_column(sa.String)
    event_id: Mapped[int | None] = mapped_column(
        sa.Integer, sa.ForeignKey("events.id", ondelete="CASCADE"), nullable=True, index=True
    )

    # Cached display fields
    title: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    image: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    event_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True)
    venue_name: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    city: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    country: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    latitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    url: Mapped[str | None] = mapped_column(sa.String, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"), onupdate=sa.func.now()
    )

    event: Mapped[InternalEvent | None] = relationship("InternalEvent", back_populates="links")

    __table_args__ = (
        sa.UniqueConstraint("source", "external_id", name="uq_api_events_source_external_id"),
    )

"""Internal event model -- the event rows owned by this system."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

import sqlalchemy as sa
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_link.models.base import Base

if TYPE_CHECKING:
    from event_link.models.event_link import EventLink


class InternalEvent(Base):
    """A canonical event row.

    Created either directly by a user (``created_by`` set) or by the identity
    resolver from a provider listing (``created_by`` is ``None``).
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(sa.Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(sa.String)
    description: Mapped[str | None] = mapped_column(sa.Text, nullable=True)
    image: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    event_at: Mapped[datetime | None] = mapped_column(sa.DateTime, nullable=True, index=True)

    # Location
    location: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    venue_name: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    city: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    country: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    latitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(sa.Float, nullable=True)

    type: Mapped[str | None] = mapped_column(sa.String, nullable=True)  # category slug
    url: Mapped[str | None] = mapped_column(sa.String, nullable=True)
    created_by: Mapped[int | None] = mapped_column(sa.Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(sa.DateTime, server_default=sa.text("CURRENT_TIMESTAMP"))

    links: Mapped[list[EventLink]] = relationship("EventLink", back_populates="event")

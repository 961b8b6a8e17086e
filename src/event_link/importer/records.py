"""Canonical shape of an event listing imported from an external provider."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass


@dataclass(frozen=True)
class ExternalEventRecord:
    """One provider listing after normalization.

    ``(source, external_id)`` identifies the provider's event; the pair is
    never reused for a different event.
    """

    source: str
    external_id: str
    title: str
    description: str
    date: dt.date
    time_start: str  # HH:MM
    venue_name: str
    location: str
    city: str = ""
    country: str = ""
    latitude: float | None = None
    longitude: float | None = None
    image: str | None = None
    url: str | None = None
    category_slug: str = "otro"
    category_name: str = "Otro"
    genre: str = ""
    type: str = "api"

    @property
    def event_at(self) -> dt.datetime:
        hour, minute = (int(part) for part in self.time_start.split(":")[:2])
        return dt.datetime.combine(self.date, dt.time(hour, minute))

    @property
    def id(self) -> str:
        return self.external_id

    def to_payload(self) -> dict:
        """Fields handed to the identity resolver when the record is linked."""
        return {
            "title": self.title,
            "description": self.description,
            "image": self.image,
            "event_at": self.event_at,
            "location": self.location,
            "venue_name": self.venue_name,
            "city": self.city,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "url": self.url,
            "category": self.category_slug,
        }

    def to_dict(self) -> dict:
        """JSON-friendly view used by the API and CLI."""
        return {
            "id": self.external_id,
            "external_id": self.external_id,
            "source": self.source,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "date": self.date.isoformat(),
            "time_start": self.time_start,
            "starts_at": self.event_at.isoformat(),
            "location": self.location,
            "venue_name": self.venue_name,
            "city": self.city,
            "country": self.country,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "image": self.image,
            "url": self.url,
            "category_slug": self.category_slug,
            "category_name": self.category_name,
            "genre": self.genre,
        }

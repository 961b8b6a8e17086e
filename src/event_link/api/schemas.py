"""Pydantic request/response schemas for the event_link API."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field

from event_link.resolver.identity import EventPayload


class InternalEventSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str | None = None
    event_at: dt.datetime | None = None
    location: str | None = None
    type: str | None = None
    image: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    url: str | None = None
    created_by: int | None = None
    is_favorite: bool | None = None


class ExternalEventSchema(BaseModel):
    id: str
    external_id: str
    source: str
    type: str
    title: str
    description: str
    date: dt.date
    time_start: str
    starts_at: dt.datetime
    location: str
    venue_name: str
    city: str
    country: str
    latitude: float | None = None
    longitude: float | None = None
    image: str | None = None
    url: str | None = None
    category_slug: str
    category_name: str
    genre: str


class ExternalEventsResponse(BaseModel):
    count: int
    items: list[ExternalEventSchema]
    recorded: int | None = Field(
        default=None, description="New mapping rows written when record=true"
    )


class ResolveRequest(BaseModel):
    source: str = Field(..., min_length=1)
    external_id: str = Field(..., min_length=1)
    payload: EventPayload


class ResolveResponse(BaseModel):
    event_id: int


class FavoriteRequest(BaseModel):
    user_id: int
    source: str | None = None
    external_id: str | None = None
    payload: EventPayload | None = None


class FavoriteResponse(BaseModel):
    success: bool = True
    event_id: int
    created: bool = False

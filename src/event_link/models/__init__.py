from event_link.models.base import Base
from event_link.models.event_link import EventLink
from event_link.models.interactions import EventAttendee, EventComment, EventFavorite
from event_link.models.internal_event import InternalEvent

__all__ = [
    "Base",
    "EventAttendee",
    "EventComment",
    "EventFavorite",
    "EventLink",
    "InternalEvent",
]

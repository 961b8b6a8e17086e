"""Identity resolution between provider listings and internal events."""

from event_link.resolver.identity import (
    EventPayload,
    is_numeric_id,
    lookup_event_id,
    normalize_event_id,
    record_imports,
    resolve_event_id,
)

__all__ = [
    "EventPayload",
    "is_numeric_id",
    "lookup_event_id",
    "normalize_event_id",
    "record_imports",
    "resolve_event_id",
]

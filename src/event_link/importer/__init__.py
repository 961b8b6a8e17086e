"""Provider importers producing normalized external event records."""

from event_link.importer.records import ExternalEventRecord
from event_link.importer.ticketmaster import (
    MAX_PAGE_SIZE,
    fetch_events_by_city,
    fetch_events_multiple_cities,
    format_ticketmaster_event,
    format_ticketmaster_events,
)

__all__ = [
    "ExternalEventRecord",
    "MAX_PAGE_SIZE",
    "fetch_events_by_city",
    "fetch_events_multiple_cities",
    "format_ticketmaster_event",
    "format_ticketmaster_events",
]

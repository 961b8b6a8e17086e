"""Error taxonomy for importing and linking external events."""


class EventLinkError(Exception):
    """Base class for all event_link errors."""


class ProviderUnavailable(EventLinkError):
    """The ticketing provider could not be reached or answered with an error.

    Absorbed by the importer, which degrades to an empty result.
    """


class StoreUnavailable(EventLinkError):
    """The relational store could not be reached."""


class ValidationError(EventLinkError):
    """A normalized payload is missing a required field."""


class ConflictRace(EventLinkError):
    """Another writer linked the same ``(source, external_id)`` first.

    Only raised and caught inside the resolver.
    """


class UnlinkedEventError(EventLinkError):
    """An external id was referenced before it was linked to an internal event."""

    def __init__(self, source: str, external_id: str) -> None:
        super().__init__(f"No link for api_events(source={source!r}, external_id={external_id!r})")
        self.source = source
        self.external_id = external_id


class EventNotFound(EventLinkError):
    """No internal event with the given id."""

    def __init__(self, event_id: int) -> None:
        super().__init__(f"Event {event_id} not found")
        self.event_id = event_id

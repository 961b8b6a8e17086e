"""Operations on internal events."""

from event_link.events.operations import add_favorite, delete_event, list_favorite_ids, remove_favorite

__all__ = ["add_favorite", "delete_event", "list_favorite_ids", "remove_favorite"]

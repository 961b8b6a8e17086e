"""Order-preserving deduplication of a mixed internal/external event list."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from event_link.dedup.normalizer import DEFAULT_VARIANT_KEYWORDS, normalize_title_key

EXTERNAL_TYPE = "api"
EXTERNAL_SOURCES = frozenset({"ticketmaster"})


def _field(event: Any, name: str) -> Any:
    if isinstance(event, Mapping):
        return event.get(name)
    return getattr(event, name, None)


def is_external(event: Any) -> bool:
    """True for provider listings: ``type == "api"`` or a known provider source."""
    return str(_field(event, "type")) == EXTERNAL_TYPE or str(_field(event, "source")) in EXTERNAL_SOURCES


def dedupe_key(
    event: Any, keywords: tuple[str, ...] = DEFAULT_VARIANT_KEYWORDS
) -> str | None:
    """Grouping key of one event, or ``None`` if it cannot be classified.

    Provider listings are keyed by their normalized title, which may be the
    empty string; every listing whose title is all variant words shares it.
    Internal events are keyed by ``"{type}-{id}"`` so they are never merged
    with a different event.  Only values that are neither a mapping nor an
    attribute object (``None``, strings, numbers) are unclassifiable.
    """
    if not isinstance(event, Mapping) and not hasattr(event, "__dict__"):
        return None
    if is_external(event):
        title = _field(event, "title")
        return normalize_title_key(title if isinstance(title, str) else "", keywords)
    return f"{_field(event, 'type')}-{_field(event, 'id')}"


def dedupe(events: Iterable[Any], keywords: tuple[str, ...] = DEFAULT_VARIANT_KEYWORDS) -> list:
    """Keep the first event of every key, preserving input order.

    Accepts dicts as well as attribute objects (records, ORM rows).  Events
    that cannot be classified are always kept.
    """
    seen: set[tuple[bool, str]] = set()
    kept = []
    for event in events:
        try:
            key = dedupe_key(event, keywords)
            external = is_external(event)
        except (TypeError, ValueError, AttributeError):
            key = None
        if key is None:
            kept.append(event)
            continue
        marker = (external, key)
        if marker not in seen:
            seen.add(marker)
            kept.append(event)
    return kept

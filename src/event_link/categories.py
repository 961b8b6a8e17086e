"""Event category catalogue shared by imported and user-created events."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Category:
    slug: str
    name: str


EVENT_CATEGORIES: tuple[Category, ...] = (
    Category("musica", "Música"),
    Category("deportes", "Deportes"),
    Category("arte", "Arte"),
    Category("tecnologia", "Tecnología"),
    Category("educacion", "Educación"),
    Category("gastronomia", "Gastronomía"),
    Category("cine", "Cine"),
    Category("otro", "Otro"),
)

DEFAULT_CATEGORY = EVENT_CATEGORIES[-1]


def find_category(value: str | None) -> Category | None:
    """Find a category by slug or display name (case-insensitive)."""
    if not value:
        return None
    normalized = value.strip().lower()
    for category in EVENT_CATEGORIES:
        if category.slug == normalized or category.name.lower() == normalized:
            return category
    return None


def normalize_event_category(value: str | None) -> Category:
    return find_category(value) or DEFAULT_CATEGORY

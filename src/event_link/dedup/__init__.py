"""Collapsing of near-duplicate provider listings before display."""

from event_link.dedup.listing import dedupe, dedupe_key, is_external
from event_link.dedup.normalizer import (
    DEFAULT_VARIANT_KEYWORDS,
    VariantConfig,
    load_variant_config,
    normalize_title_key,
)

__all__ = [
    "DEFAULT_VARIANT_KEYWORDS",
    "VariantConfig",
    "dedupe",
    "dedupe_key",
    "is_external",
    "load_variant_config",
    "normalize_title_key",
]

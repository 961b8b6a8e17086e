"""Title normalization for collapsing ticket-tier variants of one listing.

Providers often publish one show several times, e.g.
``"Rock Fest 2026 | VIP PACKAGES"`` and ``"Rock Fest 2026 | General Admission"``.
Both normalize to ``"rock fest 2026"``.
"""

import re
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import BaseModel

DEFAULT_VARIANT_KEYWORDS: tuple[str, ...] = (
    "vip",
    "ga",
    "general admission",
    "packages",
    "package",
    "tickets",
    "ticket",
    "presale",
    "early bird",
)


class VariantConfig(BaseModel):
    """Ticket-variant keywords removed from provider titles."""

    keywords: list[str] = list(DEFAULT_VARIANT_KEYWORDS)


def load_variant_config(config_path: Path) -> VariantConfig:
    """Load variant keywords from a YAML file.

    Args:
        config_path: Path to the ticket_variants.yaml file.

    Returns:
        VariantConfig with the loaded keywords, or the defaults for an
        empty file.
    """
    with open(config_path, encoding="utf-8") as f:
        raw = yaml.safe_load(f)

    if not raw:
        return VariantConfig()

    return VariantConfig.model_validate(raw)


@lru_cache(maxsize=32)
def _variant_pattern(keywords: tuple[str, ...]) -> re.Pattern[str] | None:
    alternatives = []
    # Longest first so "general admission" wins over any shorter overlap
    for keyword in sorted(keywords, key=len, reverse=True):
        words = keyword.casefold().split()
        if words:
            # "early bird", "early-bird" and "earlybird" are the same variant
            alternatives.append(r"[\s-]*".join(re.escape(w) for w in words))
    if not alternatives:
        return None
    return re.compile(r"\b(?:" + "|".join(alternatives) + r")\b")


def normalize_title_key(
    title: str | None, keywords: tuple[str, ...] = DEFAULT_VARIANT_KEYWORDS
) -> str:
    """Reduce a provider title to the key shared by its ticket variants.

    Steps:
        1. Cut at the first ``|`` (tier suffixes follow a pipe)
        2. Case-fold
        3. Remove variant keywords as whole words
        4. Drop everything that is not a letter, digit or whitespace
        5. Collapse whitespace and strip

    Args:
        title: Provider title.
        keywords: Variant keywords to remove.

    Returns:
        Normalized key, possibly empty.
    """
    if not title:
        return ""

    result = title.split("|", 1)[0].casefold()

    pattern = _variant_pattern(tuple(keywords))
    if pattern is not None:
        result = pattern.sub("", result)

    result = re.sub(r"[^\w\s]|_", "", result)
    return re.sub(r"\s+", " ", result).strip()

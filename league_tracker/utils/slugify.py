"""URL-safe slug generation for league pages."""

import re
import unicodedata
from typing import Iterable

DEFAULT_SLUG = "league"

# Matches the leagues.slug column
SLUG_MAX_LENGTH = 200
# Room kept free for a collision suffix such as "-2"
SLUG_SUFFIX_ROOM = 10


def slugify(text: str, max_length: int = SLUG_MAX_LENGTH - SLUG_SUFFIX_ROOM) -> str:
    """Convert a league name to a URL-safe slug (lowercase, hyphens, no special chars).

    The result is at most ``max_length`` characters, so ``unique_slug`` can add
    a suffix without overflowing the column. Names with nothing
    ASCII-representable (e.g. "!!!") fall back to "league".

    Examples:
        >>> slugify("Tekken 8 Season #1")
        'tekken-8-season-1'
    """
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^\w\s-]", "", text.lower().strip())
    text = re.sub(r"[\s_-]+", "-", text).strip("-")
    text = text[:max_length].rstrip("-")
    return text or DEFAULT_SLUG


def unique_slug(base: str, taken: Iterable[str]) -> str:
    """Return ``base`` or the first of ``base-2``, ``base-3``... not in ``taken``."""
    taken = set(taken)
    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"

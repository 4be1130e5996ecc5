"""Derived text fields for posts."""
import math
import re
from datetime import datetime, UTC

_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")

EXCERPT_MARKER = "..."


def slugify(title: str) -> str:
    """Lowercase ``title`` and collapse every non-alphanumeric run into ``-``."""
    slug = _NON_SLUG_CHARS.sub("-", title.lower()).strip("-")
    return slug or "post"


def current_millis(now: datetime | None = None) -> int:
    now = now or datetime.now(UTC)
    return int(now.timestamp() * 1000)


def make_slug(title: str, stamp: int) -> str:
    """Slug plus a millisecond timestamp suffix that disambiguates equal titles."""
    return f"{slugify(title)}-{stamp}"


def word_count(text: str) -> int:
    return len(text.split())


def read_time(text: str, words_per_minute: int = 200) -> int:
    """Minutes needed to read ``text``, rounded up."""
    return math.ceil(word_count(text) / words_per_minute)


def derive_excerpt(text: str, length: int = 150) -> str:
    if len(text) <= length:
        return text
    return text[:length] + EXCERPT_MARKER

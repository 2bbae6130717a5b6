# app/core/slugs.py
import re
import unicodedata
from typing import Awaitable, Callable

_QUOTES = re.compile(r"['‘’\"“”`]")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(raw: str, fallback: str = "item") -> str:
    """
    Basic slugification:
      - fold accents to ASCII
      - lowercase
      - drop apostrophes / quotes ("Men's" -> "mens")
      - non-alphanumeric runs -> '-'
      - strip leading/trailing '-'
    """
    value = unicodedata.normalize("NFKD", raw).encode("ascii", "ignore").decode("ascii")
    value = _QUOTES.sub("", value.strip().lower())
    value = _NON_ALNUM.sub("-", value)
    value = value.strip("-")
    return value or fallback


async def ensure_unique_slug(
    base_slug: str,
    exists: Callable[[str], Awaitable[bool]],
) -> str:
    """
    Ensure slug is unique by appending -1, -2, ... if needed.

    `exists` probes the store for a candidate. The loop is check-then-act:
    two concurrent writers can pick the same candidate, so callers that
    insert should still handle a unique violation.
    """
    slug = base_slug
    counter = 1
    while await exists(slug):
        slug = f"{base_slug}-{counter}"
        counter += 1
    return slug

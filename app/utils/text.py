"""
Text helpers
"""

import re
import unicodedata
from typing import Iterable


def slugify(text: str, max_length: int = 80) -> str:
    """Create a URL-safe ASCII slug from a (Spanish) title"""
    s = unicodedata.normalize("NFKD", text or "")
    s = s.encode("ascii", "ignore").decode("ascii").lower()
    s = re.sub(r"[^a-z0-9]+", "-", s).strip("-")
    s = s[:max_length].rstrip("-")
    return s or "articulo"


def unique_slug(title: str, existing: Iterable[str]) -> str:
    taken = set(existing)
    base = slugify(title)
    slug = base
    idx = 1
    while slug in taken:
        idx += 1
        slug = f"{base}-{idx}"
    return slug

"""
Slug and publication rules applied to documents before they are written.
"""

import re
from datetime import datetime
from typing import Any, Dict, Optional

import markdown

from config import PostStatus

EXCERPT_LENGTH = 160

_NON_SLUG_CHARS = re.compile(r"[^\w\s-]", re.ASCII)
_SEPARATORS = re.compile(r"[\s-]+")


def slugify(text: str) -> str:
    """
    Lowercase ``text``, drop anything that is not a word character, whitespace
    or hyphen, and turn each run of whitespace and hyphens into a single hyphen.

    >>> slugify("Hello, World!")
    'hello-world'
    """
    text = _NON_SLUG_CHARS.sub("", (text or "").lower())
    return _SEPARATORS.sub("-", text)


def apply_slug(changes: Dict[str, Any], current: Optional[Dict[str, Any]], field: str) -> Dict[str, Any]:
    """Set ``changes["slug"]`` when ``field`` is new or differs from the stored value."""
    if field not in changes or changes[field] is None:
        return changes
    if current is None or current.get(field) != changes[field] or not current.get("slug"):
        changes["slug"] = slugify(changes[field])
    return changes


def stamp_publication(
    changes: Dict[str, Any],
    current: Optional[Dict[str, Any]],
    now: datetime,
) -> Dict[str, Any]:
    # published_at is written once, on the first transition into published
    if changes.get("status") != PostStatus.PUBLISHED.value:
        return changes
    if current is not None and current.get("published_at"):
        return changes
    changes["published_at"] = now
    changes["is_published"] = True
    return changes


def render_content(text: str) -> str:
    return markdown.markdown(text or "")


def make_excerpt(raw_content: str) -> str:
    # Counts characters only; markup may be cut mid-tag.
    return (raw_content or "")[:EXCERPT_LENGTH]

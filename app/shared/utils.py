"""Shared utility functions."""

from __future__ import annotations

import re
from datetime import datetime, timezone

SLUG_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
_NON_SLUG_CHARS = re.compile(r"[^a-z0-9]+")


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def slugify(value: str) -> str:
    """Lowercase value and collapse non-alphanumeric runs into single hyphens."""
    return _NON_SLUG_CHARS.sub("-", value.lower()).strip("-")

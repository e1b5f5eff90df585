"""Shared utility functions."""
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render an aware datetime the way clients expect it (ISO 8601, UTC)."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def match_rank(query: str, *fields: str) -> Optional[int]:
    """Return 0 for a prefix match, 1 for an inner substring match, None otherwise.

    Matching is case-insensitive; the best rank over all fields wins.
    """
    needle = query.casefold()
    best: Optional[int] = None
    for field in fields:
        haystack = (field or "").casefold()
        if haystack.startswith(needle):
            return 0
        if needle in haystack:
            best = 1
    return best

"""
Shared Utility Functions

Common helper functions used across multiple modules.
"""

import re
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def flatten_list(items: Any) -> List[str]:
    """
    Flatten a potentially nested list to a single-level list of strings.

    Handles various formats:
    - Nested lists: [["a", "b"]] → ["a", "b"]
    - Flat lists: ["a", "b"] → ["a", "b"]
    - Single string: "a" → ["a"]
    - None/empty: None → []

    Declared expertise arrives in all of these shapes depending on how the
    profile was filled in.

    Args:
        items: Any value that could be a list, nested list, or string

    Returns:
        Flat list of non-empty, stripped strings
    """
    if not items:
        return []

    if isinstance(items, str):
        items = [items]
    elif not isinstance(items, (list, tuple, set)):
        items = [items]

    result = []
    for item in items:
        if isinstance(item, (list, tuple, set)):
            result.extend(flatten_list(list(item)))
        elif item is not None:
            text = str(item).strip()
            if text:
                result.append(text)

    return result


def unique_preserving_order(items: Iterable[str]) -> List[str]:
    """Drop duplicates, keeping the first occurrence of each value."""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def ensure_utc(value: datetime) -> datetime:
    """Return a timezone-aware datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def age_in_days(created_at: datetime, now: datetime) -> float:
    """Fractional days elapsed between created_at and now."""
    delta = ensure_utc(now) - ensure_utc(created_at)
    return delta.total_seconds() / SECONDS_PER_DAY


def slugify_label(value: str) -> str:
    """
    Turn a free-text title into a tag label.

    Examples:
        "Team Tools Survey" → "team_tools_survey"
        "  Q3  Retro " → "q3_retro"
    """
    return re.sub(r"\s+", "_", value.strip().lower())


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def record_field(record: Any, name: str, default: Optional[Any] = None) -> Any:
    """Read a field from either a pydantic model or a plain mapping."""
    if isinstance(record, Mapping):
        return record.get(name, default)
    return getattr(record, name, default)

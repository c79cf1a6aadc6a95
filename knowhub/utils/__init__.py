"""
Utility package exports
"""

from knowhub.utils.helpers import (
    flatten_list,
    unique_preserving_order,
    ensure_utc,
    utc_now,
    age_in_days,
    slugify_label,
    truncate,
    record_field,
)

__all__ = [
    "flatten_list",
    "unique_preserving_order",
    "ensure_utc",
    "utc_now",
    "age_in_days",
    "slugify_label",
    "truncate",
    "record_field",
]

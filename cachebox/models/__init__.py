"""cachebox data models.

- cache_record.py -- the stored unit (composed key, serialized value,
  absolute expiry instant) plus the UTC instant helpers engine-backed
  providers use to persist ``valid_until``.
"""

from cachebox.models.cache_record import (
    NEVER_EXPIRES,
    CacheRecord,
    expiry_from,
    format_instant,
    parse_instant,
    utc_now,
)

__all__ = [
    "NEVER_EXPIRES",
    "CacheRecord",
    "expiry_from",
    "format_instant",
    "parse_instant",
    "utc_now",
]

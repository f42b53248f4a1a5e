"""The stored unit shared by every cache backend.

A :class:`CacheRecord` is pure data: the fully composed key, the serialized
value and the absolute UTC instant after which the record is dead.  Models
are frozen; an upsert replaces the whole record rather than mutating it,
which lets the in-memory provider compare records by identity when it
evicts them.

Engine-backed providers persist ``valid_until`` as fixed-width ISO-8601 text
(see :func:`format_instant`) so that plain string comparison in SQL or in a
document query orders instants correctly.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict

# Records written without any TTL live until this instant, i.e. forever
# under any realistic clock.
NEVER_EXPIRES = datetime.max.replace(tzinfo=timezone.utc)

_LONG_AGO = datetime.min.replace(tzinfo=timezone.utc)

_INSTANT_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def expiry_from(now: datetime, timeout: timedelta | None) -> datetime:
    """Return the ``valid_until`` instant for a write at *now*.

    ``None`` means no expiry.  Timeouts that would overflow the datetime
    range are clamped to :data:`NEVER_EXPIRES`.
    """
    if timeout is None:
        return NEVER_EXPIRES
    try:
        return now + timeout
    except OverflowError:
        return NEVER_EXPIRES if timeout > timedelta(0) else _LONG_AGO


def format_instant(instant: datetime) -> str:
    """Render *instant* as sortable fixed-width UTC text."""
    # strftime does not zero-pad years below 1000 on every platform.
    instant = instant.astimezone(timezone.utc)
    return f"{instant.year:04d}-" + instant.strftime("%m-%dT%H:%M:%S.%fZ")


def parse_instant(text: str) -> datetime:
    """Inverse of :func:`format_instant`."""
    return datetime.strptime(text, _INSTANT_FORMAT).replace(tzinfo=timezone.utc)


class CacheRecord(BaseModel):
    """A single cached item.

    Attributes
    ----------
    key:
        Fully composed storage key (prefix + namespace + application key).
    value:
        Serialized payload; raw strings are stored verbatim.
    valid_until:
        Aware UTC instant after which the record must never be returned.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    value: str
    valid_until: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once *now* is past ``valid_until``."""
        return self.valid_until < now

"""Duration parsing for the ``timeout`` configuration value.

Two spellings are accepted:

* Clock style, ``[-][d.]hh:mm[:ss[.fraction]]`` or a bare integer meaning
  whole days, e.g. ``"0:0:10"``, ``"00:05:00"``, ``"1.12:00:00"``, ``"2"``.
* Unit style, a number followed by ``ms``, ``s``, ``m``, ``h`` or ``d``,
  e.g. ``"250ms"``, ``"10s"``, ``"1.5h"``.

Anything else parses to ``None``, which callers treat as "no default TTL".
"""

from __future__ import annotations

import math
import re
from datetime import timedelta

from cachebox.utils.errors import InvalidArgumentError

_CLOCK_RE = re.compile(
    r"""^\s*(?P<sign>-)?
    (?:(?P<days>\d+)\.)?
    (?P<hours>\d{1,2}):(?P<minutes>\d{1,2})
    (?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?
    \s*$""",
    re.VERBOSE,
)

_DAYS_RE = re.compile(r"^\s*(?P<sign>-)?(?P<days>\d+)\s*$")

_UNIT_RE = re.compile(r"^\s*(?P<amount>\d+(?:\.\d+)?)\s*(?P<unit>ms|s|m|h|d)\s*$", re.IGNORECASE)

_UNIT_KWARG = {
    "ms": "milliseconds",
    "s": "seconds",
    "m": "minutes",
    "h": "hours",
    "d": "days",
}


def parse_duration(text: str | None) -> timedelta | None:
    """Parse *text* into a :class:`~datetime.timedelta`, or ``None`` if unparsable."""
    try:
        return _parse(text)
    except OverflowError:
        return None


def _parse(text: str | None) -> timedelta | None:
    if text is None or not text.strip():
        return None

    match = _CLOCK_RE.match(text)
    if match:
        hours = int(match["hours"])
        minutes = int(match["minutes"])
        seconds = int(match["seconds"] or 0)
        if hours > 23 or minutes > 59 or seconds > 59:
            return None
        fraction = match["fraction"] or "0"
        duration = timedelta(
            days=int(match["days"] or 0),
            hours=hours,
            minutes=minutes,
            seconds=seconds,
            microseconds=int(fraction.ljust(6, "0")[:6]),
        )
        return -duration if match["sign"] else duration

    match = _DAYS_RE.match(text)
    if match:
        duration = timedelta(days=int(match["days"]))
        return -duration if match["sign"] else duration

    match = _UNIT_RE.match(text)
    if match:
        unit = _UNIT_KWARG[match["unit"].lower()]
        return timedelta(**{unit: float(match["amount"])})

    return None


def to_timedelta(timeout: timedelta | float | None) -> timedelta | None:
    """Normalize a per-call timeout given as a timedelta or a number of seconds.

    Seconds beyond the timedelta range (including ``float("inf")``) clamp to
    ``timedelta.max`` / ``timedelta.min``, i.e. never expires / already
    expired.
    """
    if timeout is None or isinstance(timeout, timedelta):
        return timeout
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
        raise InvalidArgumentError(
            f"timeout must be a timedelta or a number of seconds, got {type(timeout).__name__}"
        )
    if isinstance(timeout, float) and math.isnan(timeout):
        raise InvalidArgumentError("timeout must not be NaN")
    try:
        return timedelta(seconds=timeout)
    except OverflowError:
        return timedelta.max if timeout > 0 else timedelta.min

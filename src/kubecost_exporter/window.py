"""
Query windows for the Allocation API.

Durations (such as 30m, 12h, 7d) are turned into a precise start and end time
for the previous whole minute. Given a current time of 15:04:05Z, windows of
1m, 30m and 1h become:

    1m:  15:03:00Z,15:04:00Z
    30m: 14:34:00Z,15:04:00Z
    1h:  14:04:00Z,15:04:00Z

Sending explicit timestamps guarantees the window covers exactly the requested
duration; a bare duration would make the API end the window at request time.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .constants import DEFAULT_DURATION

logger = logging.getLogger(__name__)

# Seconds per unit
_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
    "w": 604800.0,
}

_TERM = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h|d|w)")

# Largest duration representable as int64 nanoseconds, about 292 years
MAX_DURATION = timedelta(microseconds=2**63 // 1000)


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as ``"30m"``, ``"1h30m"`` or ``"-1.5h"``.

    Raises:
        ValueError: If ``text`` is not a valid duration
    """
    if not isinstance(text, str):
        raise ValueError(f"invalid duration {text!r}")

    body = text.strip()
    sign = 1
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]

    if body == "0":
        return timedelta(0)
    if not body:
        raise ValueError(f"invalid duration {text!r}")

    total = timedelta(0)
    position = 0
    while position < len(body):
        match = _TERM.match(body, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        try:
            total += timedelta(seconds=float(number) * _UNITS[unit])
        except OverflowError as e:
            raise ValueError(f"invalid duration {text!r}: out of range") from e
        position = match.end()

    if total > MAX_DURATION:
        raise ValueError(f"invalid duration {text!r}: out of range")
    return total * sign


def parse_duration_or_default(
    text: object, setting: str, default: str = DEFAULT_DURATION
) -> timedelta:
    """Parse ``text``, falling back to ``default`` with a warning when it is invalid."""
    try:
        return parse_duration(text)  # type: ignore[arg-type]
    except ValueError as e:
        logger.warning(f"Error parsing '{setting}' config: {e}. Defaulting to {default}")
        return parse_duration(default)


def format_rfc3339(moment: datetime) -> str:
    """Format an aware datetime as RFC 3339 with second precision."""
    base = moment.strftime("%Y-%m-%dT%H:%M:%S")
    offset = moment.utcoffset() or timedelta(0)
    if offset == timedelta(0):
        return f"{base}Z"
    sign = "-" if offset < timedelta(0) else "+"
    minutes = abs(int(offset.total_seconds())) // 60
    return f"{base}{sign}{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeWindow:
    start: datetime
    end: datetime

    def to_query_value(self) -> str:
        """Comma-separated RFC 3339 pair, as the API's ``window`` parameter expects."""
        return f"{format_rfc3339(self.start)},{format_rfc3339(self.end)}"


def compute_window(duration: timedelta, now: Optional[datetime] = None) -> TimeWindow:
    """
    Compute the window of ``duration`` ending at the last whole minute before ``now``.

    The start is computed on absolute instants, so a window spanning a DST change
    still covers exactly ``duration``. Naive datetimes are treated as UTC. A start
    before the earliest representable date falls back to a one-minute window.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    end = now.replace(second=0, microsecond=0)
    try:
        start = (end.astimezone(timezone.utc) - duration).astimezone(end.tzinfo)
    except OverflowError:
        logger.warning(
            f"Window of {duration} before {format_rfc3339(end)} is out of range. "
            f"Defaulting to {DEFAULT_DURATION}"
        )
        start = (end.astimezone(timezone.utc) - parse_duration(DEFAULT_DURATION)).astimezone(
            end.tzinfo
        )
    return TimeWindow(start=start, end=end)


def window_for(text: object, now: Optional[datetime] = None) -> TimeWindow:
    """Parse a window duration (one minute when invalid) and compute its window."""
    return compute_window(parse_duration_or_default(text, "window"), now)

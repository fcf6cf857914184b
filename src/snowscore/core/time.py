"""
Time parsing and timezone normalization.

SnowScore treats all timestamps as timezone-aware datetimes: freshness windows
and "is it a weekday / within operating hours" checks compare against an
injected `now`, and mixing naive and aware values there is an easy bug.
"""

from __future__ import annotations

from datetime import datetime, time
from zoneinfo import ZoneInfo


def ensure_tz(dt: datetime, timezone: str) -> datetime:
    """Ensure `dt` has tzinfo; attach `timezone` if naive."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=ZoneInfo(timezone))
    return dt


def now_in(timezone: str) -> datetime:
    return datetime.now(ZoneInfo(timezone))


def parse_datetime(value: str, timezone: str) -> datetime:
    """Parse ISO-8601 datetime string and ensure tzinfo is present.

    Notes:
    - Accepts a trailing `Z` (UTC) and converts it to `+00:00` for `fromisoformat`.
    - If the parsed value is naive, the provided `timezone` is attached.
    """
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    return ensure_tz(dt, timezone)


def is_weekend(dt: datetime) -> bool:
    return dt.weekday() >= 5


def parse_time_range(text: str | None) -> tuple[time, time] | None:
    """Parse an `"08:30-16:15"` template into (open, close); None if unusable."""
    if not text:
        return None
    parts = text.split("-")
    if len(parts) != 2:
        return None
    try:
        return _parse_hhmm(parts[0]), _parse_hhmm(parts[1])
    except ValueError:
        return None


def _parse_hhmm(text: str) -> time:
    hours, _, minutes = text.strip().partition(":")
    return time(int(hours), int(minutes or 0))

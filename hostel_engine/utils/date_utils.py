"""
Date and time utility functions used across the engine.

Notes:
- All "UTC" helpers use timezone-aware datetimes with `timezone.utc`.
- `to_utc` assumes naive datetimes are already in UTC and only attaches tzinfo
  (SQLite hands back naive values for timezone-aware columns).
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

UTC = timezone.utc


def now_utc() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(UTC)


def today_utc() -> date:
    """Return today's date in UTC."""
    return now_utc().date()


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC.

    - If naive, assumes it's already in UTC and only attaches tzinfo.
    - If aware, converts to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def minutes_ago(minutes: int, now: Optional[datetime] = None) -> datetime:
    """Return the instant ``minutes`` before ``now`` (defaults to the current time)."""
    return (now or now_utc()) - timedelta(minutes=minutes)


def start_of_day(d: date) -> datetime:
    """Return 00:00 UTC of the given date."""
    return datetime(d.year, d.month, d.day, tzinfo=UTC)


def days_between(start: date, end: date) -> int:
    """Whole days from ``start`` to ``end`` (negative when ``end`` is earlier)."""
    return (end - start).days

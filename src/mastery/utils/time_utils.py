"""Canonical timestamp helpers.

Every timestamp in the store uses the SQLite format ``YYYY-MM-DD HH:MM:SS``,
naive and treated as UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from mastery.core.errors import TimeFormatError

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def utc_now() -> datetime:
    """Current time as a naive UTC datetime truncated to seconds."""
    return datetime.now(timezone.utc).replace(tzinfo=None, microsecond=0)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored timestamp.

    Raises:
        TimeFormatError: If value is not in the canonical format
    """
    try:
        return datetime.strptime(value, TIMESTAMP_FORMAT)
    except (TypeError, ValueError) as e:
        raise TimeFormatError(str(value), str(e)) from e


def format_timestamp(value: datetime) -> str:
    """Serialize a datetime to the canonical format.

    Aware datetimes are converted to UTC first.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value.strftime(TIMESTAMP_FORMAT)


def hours_between(earlier: str, now: datetime) -> float:
    """Hours elapsed from a stored timestamp to now."""
    past = parse_timestamp(earlier)
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc).replace(tzinfo=None)
    return (now - past).total_seconds() / 3600.0


def add_hours(stored: str, hours: float) -> str:
    """Add hours to a stored timestamp and re-serialize it."""
    dt = parse_timestamp(stored)
    return format_timestamp(dt + timedelta(seconds=int(hours * 3600)))

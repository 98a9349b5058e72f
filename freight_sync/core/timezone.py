"""
Timezone helpers.

Everything is stored and compared in UTC:
- `now_utc()`: current time, timezone-aware
- `to_utc(dt)`: normalizes any datetime to UTC (naive = UTC)
- `parse_timestamp(value)`: ISO-8601 string -> aware UTC datetime
"""

from datetime import datetime, timezone
from typing import Optional

from dateutil.parser import parse as parse_datetime


TZ_UTC = timezone.utc


def now_utc() -> datetime:
    """
    Returns the current datetime in UTC (timezone-aware).

    Use for persisted timestamps, logs and comparisons with stored data.
    """
    return datetime.now(TZ_UTC)


def to_utc(dt: datetime) -> datetime:
    """Converts a datetime to UTC; naive datetimes are assumed to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=TZ_UTC)
    return dt.astimezone(TZ_UTC)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """
    Parses an ISO-8601 timestamp.

    Returns:
        Aware UTC datetime, or None for empty/invalid input
    """
    if not value:
        return None
    try:
        return to_utc(parse_datetime(value))
    except (ValueError, OverflowError, TypeError):
        return None

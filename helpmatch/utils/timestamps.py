"""Timestamp and calendar-date utilities.

This module provides utilities for working with timestamps and dates:
- Getting current UTC time
- Converting timezone-naive to timezone-aware UTC
- Parsing ISO 8601 datetime and date strings
- Formatting timestamps for storage and logs
"""

from datetime import date, datetime, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Returns:
        Current UTC time with timezone info

    Example:
        >>> now = utc_now()
        >>> now.tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    If the datetime is timezone-naive, it's treated as UTC.
    If the datetime has a different timezone, it's converted to UTC.

    Args:
        dt: Datetime to convert (can be None)

    Returns:
        Timezone-aware datetime in UTC, or None if input is None
    """
    if dt is None:
        return None

    # If timezone-naive, treat as UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: str) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports:
    - 2020-10-14T12:00:00Z
    - 2020-10-14T12:00:00+00:00
    - 2020-10-14T12:00:00.123456Z
    - 2020-10-14

    Args:
        iso_string: ISO 8601 formatted datetime string

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    # fromisoformat does not accept the 'Z' suffix on older interpreters
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        return None


def parse_iso_date(value: Union[str, date, None]) -> Optional[date]:
    """Parse a calendar date from a ``date``, ``datetime`` or ``YYYY-MM-DD`` string.

    A ``datetime`` is reduced to its calendar date as given (no timezone
    conversion), so a due date keeps the day the author picked.

    Args:
        value: Date-like value

    Returns:
        The calendar date, or None if the value is empty or malformed

    Example:
        >>> parse_iso_date("2020-10-14")
        datetime.date(2020, 10, 14)
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    cleaned = value.strip()
    try:
        return date.fromisoformat(cleaned)
    except ValueError:
        pass

    # Full timestamps carry the due day in their date part
    parsed = parse_iso_datetime(cleaned)
    if parsed is None:
        return None
    return date.fromisoformat(cleaned[:10])


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 string in UTC.

    Args:
        dt: Datetime to format
        include_microseconds: Whether to include microseconds in output

    Returns:
        ISO 8601 formatted string with 'Z' suffix

    Example:
        >>> from datetime import datetime, timezone
        >>> dt = datetime(2020, 10, 14, 12, 0, 0, tzinfo=timezone.utc)
        >>> format_timestamp(dt)
        '2020-10-14T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")

"""Timestamp utilities for UTC handling and datetime parsing."""

from datetime import datetime, timedelta, timezone
from typing import Optional, Union


def utc_now() -> datetime:
    """Current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Make a datetime timezone-aware UTC.

    Naive datetimes are treated as UTC; aware ones are converted.

    Example:
        >>> naive = datetime(2025, 11, 4, 12, 0, 0)
        >>> ensure_utc(naive).tzinfo == timezone.utc
        True
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(value: Union[str, datetime, None]) -> Optional[datetime]:
    """Parse an ISO 8601 string (or pass through a datetime) as UTC.

    Supports:
    - 2025-11-04T12:00:00Z
    - 2025-11-04T12:00:00.123+03:00
    - 2025-11-04T12:00:00
    - 2025-11-04

    Returns:
        Timezone-aware UTC datetime, or None if the value cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        return ensure_utc(value)

    if not isinstance(value, str) or not value.strip():
        return None

    cleaned = value.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except ValueError:
        pass

    for fmt in ("%Y-%m-%dT%H:%M:%S", "%Y-%m-%d", "%d/%m/%Y"):
        try:
            return ensure_utc(datetime.strptime(value.strip(), fmt))
        except ValueError:
            continue

    return None


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 UTC with a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%SZ")


def days_from_now(days: int, now: Optional[datetime] = None) -> datetime:
    """UTC datetime ``days`` after ``now`` (default: current time)."""
    return ensure_utc(now or utc_now()) + timedelta(days=days)


def is_within_days(dt: Optional[datetime], days: int, now: Optional[datetime] = None) -> bool:
    """Whether ``dt`` lies at most ``days`` days before ``now``.

    A missing timestamp counts as within range, so jobs with unknown
    publication dates are never dropped by age filtering.
    """
    if dt is None:
        return True

    reference = ensure_utc(now or utc_now())
    age = reference - ensure_utc(dt)
    return age <= timedelta(days=days)

"""
Timezone-aware datetime utilities.
Cache timestamps are stored in UTC; race dates come from the API as ISO dates.
"""
from datetime import date, datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    """Return current UTC datetime (timezone-aware)."""
    return datetime.now(tz=timezone.utc)


def to_utc(dt: datetime) -> datetime:
    """
    Convert a datetime to UTC. If naive, assume it is already UTC.

    Args:
        dt: Input datetime (aware or naive).

    Returns:
        UTC-aware datetime.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def parse_iso_timestamp(ts: str) -> Optional[datetime]:
    """
    Parse an ISO 8601 timestamp string to a UTC-aware datetime.

    Returns None if the string is empty or unparseable.
    """
    if not ts:
        return None
    try:
        return to_utc(datetime.fromisoformat(ts))
    except (ValueError, TypeError):
        return None


def parse_race_date(value: Optional[str]) -> Optional[date]:
    """Parse an Ergast race date ('2023-03-05') to a date, or None."""
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except (ValueError, TypeError):
        return None

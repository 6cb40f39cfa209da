"""UTC time helpers (timezone-aware calculation, naive storage)."""
from __future__ import annotations

from datetime import datetime, timezone, date


def utc_now() -> datetime:
    """Return a UTC timestamp without tzinfo for DB columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(moment: datetime | None = None) -> datetime:
    """Midnight (naive UTC) of the day containing ``moment``."""
    moment = moment or utc_now()
    return datetime(moment.year, moment.month, moment.day)


def to_naive_utc(value: datetime | None) -> datetime | None:
    """Convert an aware datetime to naive UTC; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value) -> datetime | None:
    """Parse an ISO-8601 date or datetime string into naive UTC.

    Raises ValueError on malformed input.
    """
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return to_naive_utc(value)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    return to_naive_utc(datetime.fromisoformat(text))


def isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None

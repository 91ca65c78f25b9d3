"""UTC datetime utilities.

All date handling inside the engines operates on timezone-aware UTC
datetimes. Raw strings are converted here, at the boundary, and nowhere else.
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def ensure_utc(ts: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_timestamp(value: datetime | str | None) -> datetime | None:
    """Parse an ISO8601 string or datetime into aware UTC. Returns None on bad input."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, str):
        try:
            return ensure_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None

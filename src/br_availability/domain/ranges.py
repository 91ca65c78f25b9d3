"""Range algebra over closed, day-granular date ranges.

Boundary convention: both ends are normalized to midnight UTC and compared
inclusively, so ranges that touch on the same day overlap. Used both for
merging and for the blocked check, which keeps the two consistent.
"""

from collections.abc import Iterable
from datetime import datetime, timedelta

from src.br_availability.domain.models import DateRange
from src.br_common.datetime_utils import ensure_utc

ONE_DAY = timedelta(days=1)


def normalize_day(ts: datetime) -> datetime:
    """Midnight UTC of the timestamp's UTC calendar day."""
    return ensure_utc(ts).replace(hour=0, minute=0, second=0, microsecond=0)


def normalize_range(r: DateRange) -> DateRange:
    return DateRange(normalize_day(r.start), normalize_day(r.end))


def rental_days(start: datetime, end: datetime) -> int:
    """ceil((end - start) / 1 day) using exact timedelta arithmetic."""
    return -((start - end) // ONE_DAY)


def merge_ranges(ranges: Iterable[DateRange]) -> list[DateRange]:
    """Minimal sorted, non-overlapping cover of the inputs (day-normalized)."""
    normalized = sorted((normalize_range(r) for r in ranges), key=lambda r: r.start)
    if not normalized:
        return []

    merged: list[DateRange] = []
    current = normalized[0]
    for nxt in normalized[1:]:
        if nxt.start <= current.end:
            current = DateRange(current.start, max(current.end, nxt.end))
        else:
            merged.append(current)
            current = nxt
    merged.append(current)
    return merged


def is_range_blocked(
    candidate_start: datetime,
    candidate_end: datetime,
    blocked_ranges: Iterable[DateRange],
) -> bool:
    """True iff the day-normalized candidate intersects any blocked range."""
    start = normalize_day(candidate_start)
    end = normalize_day(candidate_end)
    return any(start <= r.end and end >= r.start for r in blocked_ranges)


def earliest_available_start(
    blocked_ranges: Iterable[DateRange],
    from_date: datetime,
    duration_days: int,
) -> datetime | None:
    """First day >= from_date whose [day, day + duration_days] window is unblocked.

    Returns None for an empty blocked set: nothing constrains the search and
    the caller treats from_date itself as available.
    """
    if duration_days < 0:
        raise ValueError(f"duration_days must be >= 0, got {duration_days}")

    ordered = merge_ranges(blocked_ranges)
    if not ordered:
        return None

    cursor = normalize_day(from_date)
    window = timedelta(days=duration_days)
    for r in ordered:
        if r.end < cursor:
            continue
        if cursor + window < r.start:
            return cursor
        cursor = r.end + ONE_DAY
    return cursor

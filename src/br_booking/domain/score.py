"""Utilization score: hours accrued on a box by committed bookings.

Creation adds duration_hours(start, end); reversal subtracts the same scheduled
duration, so the two deltas are exact inverses whenever the reversal happens.
"""

import logging
from datetime import datetime, timedelta

from src.br_common.datetime_utils import ensure_utc

logger = logging.getLogger(__name__)

_ONE_HOUR = timedelta(hours=1)


def duration_hours(
    start: datetime,
    end: datetime,
    returned_at: datetime | None = None,
) -> int:
    """max(1, ceil((effective_end - start) / 1h)); effective_end is returned_at if set."""
    effective_end = ensure_utc(returned_at if returned_at is not None else end)
    duration = effective_end - ensure_utc(start)
    if duration < timedelta(0):
        logger.warning(
            "Negative rental duration: start=%s end=%s, clamping to 1h",
            start.isoformat(),
            effective_end.isoformat(),
        )
        return 1
    return max(1, -((-duration) // _ONE_HOUR))


def score_delta_for_creation(start: datetime, end: datetime) -> int:
    return duration_hours(start, end)


def score_delta_for_reversal(start: datetime, end: datetime) -> int:
    """Uses the scheduled duration, never the elapsed one."""
    return -duration_hours(start, end)

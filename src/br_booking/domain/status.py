"""Booking status calculation and drift detection.

Pure functions: no I/O. Persisting the drift is BookingStatusService's job.
"""

import logging
from collections.abc import Iterable
from datetime import datetime

from src.br_booking.domain.models import Booking, StatusChange
from src.br_common.datetime_utils import parse_timestamp
from src.br_common.enums import TERMINAL_STATUSES, BookingStatus

logger = logging.getLogger(__name__)


def calculate_status(
    start: datetime | str | None,
    end: datetime | str | None,
    now: datetime,
    returned_at: datetime | str | None = None,
) -> BookingStatus:
    """Map (start, end, now, returned_at) to a BookingStatus.

    Order matters:
      1. returned_at set      -> COMPLETED (return wins, even inside the window)
      2. end < now            -> OVERDUE
      3. start <= now <= end  -> ACTIVE
      4. otherwise            -> UPCOMING

    Unparseable start/end fail open to UPCOMING: this only drives display and
    sync, never money.
    """
    start_ts = parse_timestamp(start)
    end_ts = parse_timestamp(end)
    if start_ts is None or end_ts is None:
        logger.warning(
            "Invalid dates for status calculation: start=%r end=%r", start, end
        )
        return BookingStatus.UPCOMING

    if returned_at is not None:
        if parse_timestamp(returned_at) is not None:
            return BookingStatus.COMPLETED
        logger.warning("Ignoring unparseable returned_at=%r", returned_at)

    now_ts = parse_timestamp(now)
    if now_ts is None:
        logger.warning("Invalid reference time for status calculation: now=%r", now)
        return BookingStatus.UPCOMING

    if end_ts < now_ts:
        return BookingStatus.OVERDUE
    if start_ts <= now_ts <= end_ts:
        return BookingStatus.ACTIVE
    return BookingStatus.UPCOMING


def sync_statuses(bookings: Iterable[Booking], now: datetime) -> list[StatusChange]:
    """Diffs only: non-terminal bookings whose computed status differs from the stored one."""
    changes: list[StatusChange] = []
    for booking in bookings:
        if booking.status in TERMINAL_STATUSES:
            continue
        computed = calculate_status(
            booking.start_date, booking.end_date, now, booking.returned_at
        )
        if computed != booking.status:
            changes.append(StatusChange(booking.id, booking.status, computed))
    return changes

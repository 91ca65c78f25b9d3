"""Tiered cancellation refund policy.

Rules:
  - Active rental: cancellation (early return) allowed, refund 0.
  - Completed, overdue, or already cancelled: not eligible.
  - Not started, rental_days <= 3: 50% within 24h of start, else 100% minus fee.
  - Not started, rental_days > 3:  75% within 48h of start, else 100% minus fee.
  - Not started by the clock but stored as ACTIVE/OVERDUE: 0%, reason flags the mismatch.
  - The fixed transaction fee is only subtracted on the 100% tier.

Pure w.r.t. its inputs: same booking + same `now` -> same RefundCalculation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta

from src.br_availability.domain.ranges import rental_days
from src.br_booking.domain.models import Booking
from src.br_booking.domain.status import calculate_status
from src.br_common.cents import percentage_of
from src.br_common.datetime_utils import ensure_utc
from src.br_common.enums import BookingStatus

DEFAULT_TRANSACTION_FEE = 2900  # 29.00 kr

SHORT_RENTAL_MAX_DAYS = 3

_STARTED_STATUSES = frozenset({BookingStatus.ACTIVE, BookingStatus.OVERDUE})


@dataclass(frozen=True)
class RefundTier:
    late_window: timedelta
    late_percentage: int


SHORT_RENTAL_TIER = RefundTier(late_window=timedelta(hours=24), late_percentage=50)
LONG_RENTAL_TIER = RefundTier(late_window=timedelta(hours=48), late_percentage=75)


@dataclass(frozen=True)
class RefundCalculation:
    refund_amount: int               # minor units
    refund_percentage: int           # 0 | 50 | 75 | 100
    transaction_fee: int             # minor units, non-zero only on the 100% tier
    reason: str
    eligible: bool


def _no_refund(reason: str, eligible: bool) -> RefundCalculation:
    return RefundCalculation(
        refund_amount=0,
        refund_percentage=0,
        transaction_fee=0,
        reason=reason,
        eligible=eligible,
    )


class RefundPolicy:
    def __init__(self, transaction_fee: int = DEFAULT_TRANSACTION_FEE) -> None:
        if transaction_fee < 0:
            raise ValueError(f"transaction_fee must be >= 0, got {transaction_fee}")
        self._transaction_fee = transaction_fee

    @property
    def transaction_fee(self) -> int:
        return self._transaction_fee

    def calculate_refund(self, booking: Booking, now: datetime) -> RefundCalculation:
        if booking.status == BookingStatus.CANCELLED:
            return _no_refund("Booking has already been cancelled.", eligible=False)

        current = calculate_status(
            booking.start_date, booking.end_date, now, booking.returned_at
        )
        if current == BookingStatus.ACTIVE:
            return _no_refund(
                "Booking is currently active. Box can be returned but no refund will be issued.",
                eligible=True,
            )
        if current == BookingStatus.COMPLETED:
            return _no_refund(
                "Booking has already been completed. No refund available.", eligible=False
            )
        if current == BookingStatus.OVERDUE:
            return _no_refund(
                "Rental period has ended without a return. No refund available.",
                eligible=False,
            )

        start = ensure_utc(booking.start_date)
        days = rental_days(start, ensure_utc(booking.end_date))
        tier = SHORT_RENTAL_TIER if days <= SHORT_RENTAL_MAX_DAYS else LONG_RENTAL_TIER
        until_start = start - ensure_utc(now)
        window_hours = int(tier.late_window / timedelta(hours=1))

        fee = 0
        if booking.status in _STARTED_STATUSES:
            # Stored status was flipped by a clock ahead of ours: the two disagree
            percentage = 0
            recorded = BookingStatus(booking.status).value
            reason = (
                f"Cannot refund: booking is recorded as {recorded} but its "
                "rental period has not started. Status is out of sync."
            )
        elif until_start <= tier.late_window:
            percentage = tier.late_percentage
            reason = (
                f"Cancelled within {window_hours} hours of rental start time. "
                f"{percentage}% refund applied."
            )
        else:
            percentage = 100
            fee = self._transaction_fee
            reason = (
                f"Cancelled more than {window_hours} hours before rental period. "
                "Full refund minus transaction fee."
            )

        amount = max(0, percentage_of(booking.total_amount, percentage) - fee)
        return RefundCalculation(
            refund_amount=amount,
            refund_percentage=percentage,
            transaction_fee=fee,
            reason=reason,
            eligible=True,
        )

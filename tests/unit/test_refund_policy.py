"""Unit tests for br_refund.domain.policy (tiered cancellation refunds)."""

from datetime import UTC, datetime, timedelta

import pytest

from src.br_booking.domain.models import Booking
from src.br_common.enums import BookingStatus
from src.br_refund.domain.policy import (
    DEFAULT_TRANSACTION_FEE,
    RefundCalculation,
    RefundPolicy,
)

START = datetime(2024, 6, 10, 9, tzinfo=UTC)


def _booking(
    days: float,
    total: int = 50000,
    status: BookingStatus = BookingStatus.UPCOMING,
    returned_at: datetime | None = None,
) -> Booking:
    return Booking(
        id="bk-1",
        box_id="box-1",
        stand_id="stand-1",
        payment_id="pay-1",
        start_date=START,
        end_date=START + timedelta(days=days),
        status=status,
        total_amount=total,
        returned_at=returned_at,
    )


@pytest.fixture
def policy() -> RefundPolicy:
    return RefundPolicy()


class TestShortRental:
    """rental_days <= 3: 50% within 24h of start, else 100% minus fee."""

    def test_more_than_24h_before_start(self, policy: RefundPolicy) -> None:
        # 24h50m before start
        calc = policy.calculate_refund(_booking(2), datetime(2024, 6, 9, 8, 10, tzinfo=UTC))
        assert calc.eligible is True
        assert calc.refund_percentage == 100
        assert calc.transaction_fee == DEFAULT_TRANSACTION_FEE
        assert calc.refund_amount == 50000 - 2900

    def test_23h_before_start_is_half(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2), datetime(2024, 6, 9, 10, tzinfo=UTC))
        assert calc.refund_percentage == 50
        assert calc.refund_amount == 25000
        assert calc.transaction_fee == 0

    def test_exactly_24h_is_inside_late_window(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2), START - timedelta(hours=24))
        assert calc.refund_percentage == 50

    def test_just_over_24h_is_full_tier(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2), START - timedelta(hours=24, seconds=1))
        assert calc.refund_percentage == 100

    def test_exactly_three_days_is_short(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(3), START - timedelta(hours=30))
        assert calc.refund_percentage == 100

    def test_reason_mentions_window(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2), START - timedelta(hours=3))
        assert "24 hours" in calc.reason
        assert "50%" in calc.reason


class TestLongRental:
    """rental_days > 3: 75% within 48h of start, else 100% minus fee."""

    def test_13h_before_start_is_three_quarters(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(
            _booking(10, total=100000), datetime(2024, 6, 9, 20, tzinfo=UTC)
        )
        assert calc.refund_percentage == 75
        assert calc.refund_amount == 75000

    def test_exactly_48h_is_inside_late_window(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(10, total=100000), START - timedelta(hours=48))
        assert calc.refund_percentage == 75

    def test_just_over_48h_is_full_tier(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(
            _booking(10, total=100000), START - timedelta(hours=48, seconds=1)
        )
        assert calc.refund_percentage == 100
        assert calc.refund_amount == 100000 - 2900

    def test_three_days_and_a_minute_is_long(self, policy: RefundPolicy) -> None:
        booking = _booking(3 + 1 / 1440)
        calc = policy.calculate_refund(booking, START - timedelta(hours=30))
        assert calc.refund_percentage == 75


class TestIneligibleAndZero:
    def test_active_is_eligible_with_zero_refund(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(5), START + timedelta(hours=1))
        assert calc.eligible is True
        assert calc.refund_amount == 0
        assert calc.refund_percentage == 0
        assert "active" in calc.reason.lower()

    def test_completed_not_eligible(self, policy: RefundPolicy) -> None:
        returned = START + timedelta(days=1)
        calc = policy.calculate_refund(
            _booking(5, returned_at=returned), START + timedelta(days=2)
        )
        assert calc.eligible is False
        assert calc.refund_amount == 0

    def test_overdue_not_eligible(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(5), START + timedelta(days=6))
        assert calc.eligible is False
        assert calc.refund_amount == 0

    def test_already_cancelled_not_eligible(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(
            _booking(5, status=BookingStatus.CANCELLED), START - timedelta(days=10)
        )
        assert calc.eligible is False
        assert "already been cancelled" in calc.reason

    @pytest.mark.parametrize("stored", [BookingStatus.ACTIVE, BookingStatus.OVERDUE])
    def test_stored_status_ahead_of_clock_refunds_nothing(
        self, policy: RefundPolicy, stored: BookingStatus
    ) -> None:
        # Clock says 10 days before start, stored status says the rental began
        calc = policy.calculate_refund(_booking(2, status=stored), START - timedelta(days=10))
        assert calc.eligible is True
        assert calc.refund_percentage == 0
        assert calc.refund_amount == 0
        assert calc.transaction_fee == 0
        assert "out of sync" in calc.reason
        assert stored.value in calc.reason

    def test_fee_larger_than_amount_floors_at_zero(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2, total=2000), START - timedelta(days=5))
        assert calc.eligible is True
        assert calc.refund_percentage == 100
        assert calc.refund_amount == 0


class TestArithmetic:
    def test_half_rounds_half_up(self, policy: RefundPolicy) -> None:
        calc = policy.calculate_refund(_booking(2, total=999), START - timedelta(hours=2))
        assert calc.refund_amount == 500

    def test_custom_fee(self) -> None:
        calc = RefundPolicy(transaction_fee=0).calculate_refund(
            _booking(2), START - timedelta(days=5)
        )
        assert calc.refund_amount == 50000

    def test_negative_fee_rejected(self) -> None:
        with pytest.raises(ValueError):
            RefundPolicy(transaction_fee=-1)

    def test_deterministic(self, policy: RefundPolicy) -> None:
        now = START - timedelta(hours=30)
        a = policy.calculate_refund(_booking(5), now)
        b = policy.calculate_refund(_booking(5), now)
        assert a == b
        assert isinstance(a, RefundCalculation)

    @pytest.mark.parametrize("days", [1, 3, 4, 14])
    def test_refund_never_increases_closer_to_start(
        self, policy: RefundPolicy, days: int
    ) -> None:
        booking = _booking(days, total=123456)
        previous = None
        for hours_before in range(24 * 7, 0, -1):
            amount = policy.calculate_refund(
                booking, START - timedelta(hours=hours_before)
            ).refund_amount
            if previous is not None:
                assert amount <= previous
            previous = amount

    @pytest.mark.parametrize("days", [1, 5])
    def test_refund_never_exceeds_total(self, policy: RefundPolicy, days: int) -> None:
        booking = _booking(days, total=777)
        for hours_before in (1, 24, 47, 49, 200):
            calc = policy.calculate_refund(booking, START - timedelta(hours=hours_before))
            assert 0 <= calc.refund_amount <= booking.total_amount

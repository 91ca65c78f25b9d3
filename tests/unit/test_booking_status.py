"""Unit tests for br_booking.domain.status."""

import logging
from datetime import UTC, datetime

import pytest

from src.br_booking.domain.models import Booking
from src.br_booking.domain.status import calculate_status, sync_statuses
from src.br_common.enums import BookingStatus

START = datetime(2024, 6, 10, 9, tzinfo=UTC)
END = datetime(2024, 6, 15, 9, tzinfo=UTC)


def _booking(
    booking_id: str = "bk-1",
    status: BookingStatus = BookingStatus.UPCOMING,
    returned_at: datetime | None = None,
) -> Booking:
    return Booking(
        id=booking_id,
        box_id="box-1",
        stand_id="stand-1",
        payment_id=f"pay-{booking_id}",
        start_date=START,
        end_date=END,
        status=status,
        total_amount=50000,
        returned_at=returned_at,
    )


class TestCalculateStatus:
    def test_before_start_is_upcoming(self) -> None:
        assert calculate_status(START, END, datetime(2024, 6, 9, tzinfo=UTC)) == BookingStatus.UPCOMING

    def test_at_start_is_active(self) -> None:
        assert calculate_status(START, END, START) == BookingStatus.ACTIVE

    def test_at_end_is_active(self) -> None:
        assert calculate_status(START, END, END) == BookingStatus.ACTIVE

    def test_after_end_is_overdue(self) -> None:
        now = datetime(2024, 6, 15, 9, 0, 1, tzinfo=UTC)
        assert calculate_status(START, END, now) == BookingStatus.OVERDUE

    def test_returned_wins_inside_window(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        assert calculate_status(START, END, now, returned_at=now) == BookingStatus.COMPLETED

    def test_returned_wins_after_end(self) -> None:
        now = datetime(2024, 7, 1, tzinfo=UTC)
        returned = datetime(2024, 6, 16, tzinfo=UTC)
        assert calculate_status(START, END, now, returned_at=returned) == BookingStatus.COMPLETED

    def test_iso_strings_accepted(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        result = calculate_status("2024-06-10T09:00:00+00:00", "2024-06-15T09:00:00Z", now)
        assert result == BookingStatus.ACTIVE

    def test_naive_treated_as_utc(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        assert calculate_status(
            datetime(2024, 6, 10, 9), datetime(2024, 6, 15, 9), now
        ) == BookingStatus.ACTIVE

    @pytest.mark.parametrize(
        "start,end",
        [("not-a-date", END), (START, None), (None, None), (START, "2024-13-45")],
    )
    def test_invalid_dates_fail_open_to_upcoming(
        self, start: object, end: object, caplog: pytest.LogCaptureFixture
    ) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        with caplog.at_level(logging.WARNING, logger="src.br_booking.domain.status"):
            assert calculate_status(start, end, now) == BookingStatus.UPCOMING  # type: ignore[arg-type]
        assert "Invalid dates" in caplog.text

    def test_unparseable_returned_at_ignored(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        assert calculate_status(START, END, now, returned_at="garbage") == BookingStatus.ACTIVE


class TestSyncStatuses:
    def test_reports_only_drifted_bookings(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        bookings = [
            _booking("a", BookingStatus.UPCOMING),  # drifted -> ACTIVE
            _booking("b", BookingStatus.ACTIVE),    # already correct
        ]
        changes = sync_statuses(bookings, now)
        assert len(changes) == 1
        assert changes[0].booking_id == "a"
        assert changes[0].old_status == BookingStatus.UPCOMING
        assert changes[0].new_status == BookingStatus.ACTIVE

    def test_terminal_bookings_never_change(self) -> None:
        now = datetime(2024, 7, 1, tzinfo=UTC)
        bookings = [
            _booking("c", BookingStatus.CANCELLED),
            _booking("d", BookingStatus.COMPLETED),
        ]
        assert sync_statuses(bookings, now) == []

    def test_overdue_detected(self) -> None:
        now = datetime(2024, 6, 20, tzinfo=UTC)
        changes = sync_statuses([_booking("e", BookingStatus.ACTIVE)], now)
        assert changes[0].new_status == BookingStatus.OVERDUE

    def test_pending_promoted(self) -> None:
        now = datetime(2024, 6, 1, tzinfo=UTC)
        changes = sync_statuses([_booking("f", BookingStatus.PENDING)], now)
        assert changes[0].new_status == BookingStatus.UPCOMING

    def test_second_pass_is_empty(self) -> None:
        now = datetime(2024, 6, 12, tzinfo=UTC)
        bookings = [_booking("g", BookingStatus.UPCOMING), _booking("h", BookingStatus.OVERDUE)]
        for change in sync_statuses(bookings, now):
            next(b for b in bookings if b.id == change.booking_id).status = change.new_status
        assert sync_statuses(bookings, now) == []

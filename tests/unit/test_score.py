"""Unit tests for br_booking.domain.score."""

import logging
from datetime import UTC, datetime, timedelta

import pytest

from src.br_booking.domain.score import (
    duration_hours,
    score_delta_for_creation,
    score_delta_for_reversal,
)

START = datetime(2024, 6, 10, 9, tzinfo=UTC)


class TestDurationHours:
    def test_whole_hours(self) -> None:
        assert duration_hours(START, START + timedelta(days=3)) == 72

    def test_partial_hour_rounds_up(self) -> None:
        assert duration_hours(START, START + timedelta(hours=2, minutes=1)) == 3

    def test_minimum_one_hour(self) -> None:
        assert duration_hours(START, START) == 1
        assert duration_hours(START, START + timedelta(minutes=5)) == 1

    def test_returned_at_overrides_end(self) -> None:
        returned = START + timedelta(hours=10)
        assert duration_hours(START, START + timedelta(days=3), returned_at=returned) == 10

    def test_negative_duration_clamped_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="src.br_booking.domain.score"):
            assert duration_hours(START, START - timedelta(hours=5)) == 1
        assert "Negative rental duration" in caplog.text


class TestScoreDeltas:
    def test_creation_adds_duration(self) -> None:
        assert score_delta_for_creation(START, START + timedelta(days=2)) == 48

    def test_reversal_is_exact_inverse(self) -> None:
        for hours in (1, 5, 23, 24, 25, 100, 721):
            end = START + timedelta(hours=hours, minutes=30)
            assert score_delta_for_creation(START, end) + score_delta_for_reversal(START, end) == 0

    def test_reversal_uses_scheduled_duration(self) -> None:
        # Same deltas whenever the cancellation happens: no elapsed-time input at all
        end = START + timedelta(days=4)
        assert score_delta_for_reversal(START, end) == -96

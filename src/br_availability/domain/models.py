"""Domain models for br_availability."""

from dataclasses import dataclass
from datetime import datetime

from src.br_booking.domain.models import Box


@dataclass(frozen=True)
class DateRange:
    """Closed interval [start, end]. Immutable; recomputed from bookings on every query."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(f"start must be <= end, got {self.start} > {self.end}")


@dataclass
class BoxAvailability:
    box: Box
    is_available: bool
    earliest_available_start: datetime | None
    blocked_ranges: list[DateRange]

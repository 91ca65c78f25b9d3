"""Pydantic schemas for br_availability API."""

from datetime import datetime

from pydantic import BaseModel

from src.br_availability.domain.models import BoxAvailability, DateRange


class DateRangeItem(BaseModel):
    start: datetime
    end: datetime

    @classmethod
    def from_domain(cls, r: DateRange) -> "DateRangeItem":
        return cls(start=r.start, end=r.end)


class BoxAvailabilityResponse(BaseModel):
    box_id: str
    stand_id: str
    display_id: str
    model: str
    score: int
    is_available: bool
    earliest_available_start: datetime | None
    blocked_ranges: list[DateRangeItem]

    @classmethod
    def from_domain(cls, a: BoxAvailability) -> "BoxAvailabilityResponse":
        return cls(
            box_id=a.box.id,
            stand_id=a.box.stand_id,
            display_id=a.box.display_id,
            model=a.box.model,
            score=a.box.score,
            is_available=a.is_available,
            earliest_available_start=a.earliest_available_start,
            blocked_ranges=[DateRangeItem.from_domain(r) for r in a.blocked_ranges],
        )


class BlockedRangesResponse(BaseModel):
    box_id: str
    blocked_ranges: list[DateRangeItem]


class RankedBoxesResponse(BaseModel):
    stand_id: str
    requested_start: datetime
    requested_end: datetime
    selected_box_id: str | None       # first available box, None if all are booked
    items: list[BoxAvailabilityResponse]


class ModelBlockedRangesResponse(BaseModel):
    location_id: str
    model: str
    blocked_ranges: list[DateRangeItem]

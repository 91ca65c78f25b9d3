"""Pydantic schemas for br_booking API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.br_booking.domain.models import Booking, StatusChange
from src.br_common.cents import cents_to_display
from src.br_common.datetime_utils import ensure_utc

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateBookingRequest(BaseModel):
    box_id: str
    start_date: datetime
    end_date: datetime
    total_amount_cents: int = Field(..., gt=0, description="Amount charged at checkout, öre")
    charge_ref: str = Field(..., description="Processor reference: ch_..., py_... or pi_...")

    @field_validator("start_date", "end_date")
    @classmethod
    def to_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @field_validator("charge_ref")
    @classmethod
    def no_whitespace(cls, v: str) -> str:
        if not v or v != v.strip() or " " in v:
            raise ValueError("charge_ref must not contain whitespace")
        return v


class ReturnBoxRequest(BaseModel):
    confirmed_good_status: bool = Field(
        ..., description="Customer confirms the box was left empty and undamaged"
    )


class SyncStatusesRequest(BaseModel):
    booking_ids: list[str] | None = Field(
        None, description="Restrict the sync to these bookings; omit for all of the caller's"
    )


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    id: str
    box_id: str
    stand_id: str
    payment_id: str
    start_date: datetime
    end_date: datetime
    status: str
    stored_status: str
    total_amount_cents: int
    total_amount_display: str
    returned_at: datetime | None = None
    created_at: datetime | None = None
    extension_count: int = 0

    @classmethod
    def from_domain(cls, booking: Booking, live_status: str) -> "BookingResponse":
        """`status` is computed at read time; `stored_status` is what the row holds."""
        return cls(
            id=booking.id,
            box_id=booking.box_id,
            stand_id=booking.stand_id,
            payment_id=booking.payment_id,
            start_date=booking.start_date,
            end_date=booking.end_date,
            status=live_status,
            stored_status=booking.status.value,
            total_amount_cents=booking.total_amount,
            total_amount_display=cents_to_display(booking.total_amount),
            returned_at=booking.returned_at,
            created_at=booking.created_at,
            extension_count=booking.extension_count,
        )


class StatusChangeItem(BaseModel):
    booking_id: str
    old_status: str
    new_status: str

    @classmethod
    def from_domain(cls, change: StatusChange) -> "StatusChangeItem":
        return cls(
            booking_id=change.booking_id,
            old_status=change.old_status.value,
            new_status=change.new_status.value,
        )


class SyncStatusesResponse(BaseModel):
    updated: int
    changes: list[StatusChangeItem]

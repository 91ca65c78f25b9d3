"""Domain models for br_booking — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.br_common.enums import BookingStatus, PaymentStatus


@dataclass
class Box:
    id: str
    stand_id: str
    display_id: str
    model: str
    status: str
    score: int                       # utilization score, hours


@dataclass
class Payment:
    id: str
    user_id: str
    amount: int                      # minor units
    currency: str
    status: PaymentStatus
    charge_ref: str | None           # ch_..., py_... or pi_...


@dataclass
class Booking:
    id: str
    box_id: str
    stand_id: str
    payment_id: str
    start_date: datetime
    end_date: datetime
    status: BookingStatus
    total_amount: int                # minor units
    returned_at: datetime | None = None
    created_at: datetime | None = None
    extension_count: int = 0


@dataclass
class BookingWithPayment:
    """Booking joined with its 1:1 payment record, as loaded for cancellation."""

    booking: Booking
    payment: Payment


@dataclass(frozen=True)
class StatusChange:
    booking_id: str
    old_status: BookingStatus
    new_status: BookingStatus

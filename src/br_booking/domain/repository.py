"""Repository Protocol for bookings, payments and box scores.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_booking.domain.models import Booking, BookingWithPayment, Payment, StatusChange


class BookingRepositoryProtocol(Protocol):
    async def get_booking(
        self, db: AsyncSession, booking_id: str
    ) -> BookingWithPayment | None: ...

    async def get_booking_for_update(
        self, db: AsyncSession, booking_id: str
    ) -> BookingWithPayment | None: ...

    async def list_non_terminal_bookings(
        self,
        db: AsyncSession,
        user_id: str | None,
        booking_ids: Sequence[str] | None,
    ) -> list[Booking]: ...

    async def apply_status_changes(
        self, db: AsyncSession, changes: Sequence[StatusChange]
    ) -> int: ...

    async def insert_payment(self, db: AsyncSession, payment: Payment) -> None: ...

    async def insert_booking(self, db: AsyncSession, booking: Booking) -> None: ...

    async def mark_cancelled(
        self, db: AsyncSession, booking_id: str, payment_id: str
    ) -> None: ...

    async def mark_returned(
        self, db: AsyncSession, booking_id: str, returned_at: datetime
    ) -> None: ...

    async def adjust_box_score(
        self, db: AsyncSession, box_id: str, delta_hours: int
    ) -> bool: ...

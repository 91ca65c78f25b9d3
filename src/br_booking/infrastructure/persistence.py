"""BookingRepository — concrete implementation of BookingRepositoryProtocol.

All queries use raw text() SQL (no ORM).
Transaction ownership: the CALLER (application service) commits or rolls back.
"""

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_booking.domain.models import (
    Booking,
    BookingWithPayment,
    Payment,
    StatusChange,
)
from src.br_common.enums import BookingStatus, PaymentStatus
from src.br_common.errors import InternalError

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_BOOKING_WITH_PAYMENT_COLUMNS = """
    b.id, b.box_id, x.stand_id, b.payment_id,
    b.start_date, b.end_date, b.status, b.total_amount,
    b.returned_at, b.created_at, b.extension_count,
    p.user_id AS payment_user_id, p.amount AS payment_amount,
    p.currency AS payment_currency, p.status AS payment_status,
    p.charge_ref AS payment_charge_ref
"""

_GET_BOOKING_SQL = text(f"""
    SELECT {_BOOKING_WITH_PAYMENT_COLUMNS}
    FROM bookings b
    JOIN payments p ON p.id = b.payment_id
    JOIN boxes x ON x.id = b.box_id
    WHERE b.id = :booking_id
""")

# Row lock serializes concurrent cancellations of the same booking
_GET_BOOKING_FOR_UPDATE_SQL = text(f"""
    SELECT {_BOOKING_WITH_PAYMENT_COLUMNS}
    FROM bookings b
    JOIN payments p ON p.id = b.payment_id
    JOIN boxes x ON x.id = b.box_id
    WHERE b.id = :booking_id
    FOR UPDATE OF b, p
""")

_LIST_NON_TERMINAL_SQL = text("""
    SELECT b.id, b.box_id, x.stand_id, b.payment_id,
           b.start_date, b.end_date, b.status, b.total_amount,
           b.returned_at, b.created_at, b.extension_count
    FROM bookings b
    JOIN payments p ON p.id = b.payment_id
    JOIN boxes x ON x.id = b.box_id
    WHERE b.status NOT IN ('COMPLETED', 'CANCELLED')
      AND (CAST(:user_id AS TEXT) IS NULL OR p.user_id = CAST(:user_id AS TEXT))
      AND (CAST(:booking_ids AS TEXT[]) IS NULL OR b.id = ANY(CAST(:booking_ids AS TEXT[])))
    ORDER BY b.start_date
""")

# One statement for the whole batch; rows already at the target status are skipped
_APPLY_STATUS_CHANGES_SQL = text("""
    UPDATE bookings AS b
    SET status = u.new_status, updated_at = NOW()
    FROM unnest(CAST(:ids AS TEXT[]), CAST(:statuses AS TEXT[])) AS u(id, new_status)
    WHERE b.id = u.id
      AND b.status <> u.new_status
      AND b.status NOT IN ('COMPLETED', 'CANCELLED')
""")

_INSERT_PAYMENT_SQL = text("""
    INSERT INTO payments (id, user_id, amount, currency, status, charge_ref)
    VALUES (:id, :user_id, :amount, :currency, :status, :charge_ref)
""")

_INSERT_BOOKING_SQL = text("""
    INSERT INTO bookings (id, box_id, payment_id, start_date, end_date,
                          status, total_amount, extension_count)
    VALUES (:id, :box_id, :payment_id, :start_date, :end_date,
            :status, :total_amount, 0)
""")

_MARK_BOOKING_CANCELLED_SQL = text("""
    UPDATE bookings SET status = 'CANCELLED', updated_at = NOW()
    WHERE id = :booking_id AND status <> 'CANCELLED'
""")

_MARK_PAYMENT_REFUNDED_SQL = text("""
    UPDATE payments SET status = 'REFUNDED', updated_at = NOW()
    WHERE id = :payment_id
""")

_MARK_RETURNED_SQL = text("""
    UPDATE bookings
    SET status = 'COMPLETED', returned_at = :returned_at, updated_at = NOW()
    WHERE id = :booking_id AND status NOT IN ('COMPLETED', 'CANCELLED')
""")

_ADJUST_BOX_SCORE_SQL = text("""
    UPDATE boxes SET score = score + :delta, updated_at = NOW()
    WHERE id = :box_id
    RETURNING id
""")

# ---------------------------------------------------------------------------
# Row mappers
# ---------------------------------------------------------------------------


def _row_to_booking(row: Any) -> Booking:
    return Booking(
        id=row.id,
        box_id=row.box_id,
        stand_id=row.stand_id,
        payment_id=row.payment_id,
        start_date=row.start_date,
        end_date=row.end_date,
        status=BookingStatus(row.status),
        total_amount=row.total_amount,
        returned_at=row.returned_at,
        created_at=row.created_at,
        extension_count=row.extension_count,
    )


def _row_to_booking_with_payment(row: Any) -> BookingWithPayment:
    return BookingWithPayment(
        booking=_row_to_booking(row),
        payment=Payment(
            id=row.payment_id,
            user_id=row.payment_user_id,
            amount=row.payment_amount,
            currency=row.payment_currency,
            status=PaymentStatus(row.payment_status),
            charge_ref=row.payment_charge_ref,
        ),
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BookingRepository:
    """Concrete repository — mutations run inside the caller's transaction."""

    async def get_booking(
        self, db: AsyncSession, booking_id: str
    ) -> BookingWithPayment | None:
        result = await db.execute(_GET_BOOKING_SQL, {"booking_id": booking_id})
        row = result.fetchone()
        return _row_to_booking_with_payment(row) if row else None

    async def get_booking_for_update(
        self, db: AsyncSession, booking_id: str
    ) -> BookingWithPayment | None:
        result = await db.execute(_GET_BOOKING_FOR_UPDATE_SQL, {"booking_id": booking_id})
        row = result.fetchone()
        return _row_to_booking_with_payment(row) if row else None

    async def list_non_terminal_bookings(
        self,
        db: AsyncSession,
        user_id: str | None,
        booking_ids: Sequence[str] | None,
    ) -> list[Booking]:
        result = await db.execute(
            _LIST_NON_TERMINAL_SQL,
            {
                "user_id": user_id,
                "booking_ids": list(booking_ids) if booking_ids is not None else None,
            },
        )
        return [_row_to_booking(row) for row in result.fetchall()]

    async def apply_status_changes(
        self, db: AsyncSession, changes: Sequence[StatusChange]
    ) -> int:
        if not changes:
            return 0
        result = await db.execute(
            _APPLY_STATUS_CHANGES_SQL,
            {
                "ids": [c.booking_id for c in changes],
                "statuses": [c.new_status.value for c in changes],
            },
        )
        return result.rowcount  # type: ignore[attr-defined]

    async def insert_payment(self, db: AsyncSession, payment: Payment) -> None:
        await db.execute(
            _INSERT_PAYMENT_SQL,
            {
                "id": payment.id,
                "user_id": payment.user_id,
                "amount": payment.amount,
                "currency": payment.currency,
                "status": payment.status.value,
                "charge_ref": payment.charge_ref,
            },
        )

    async def insert_booking(self, db: AsyncSession, booking: Booking) -> None:
        await db.execute(
            _INSERT_BOOKING_SQL,
            {
                "id": booking.id,
                "box_id": booking.box_id,
                "payment_id": booking.payment_id,
                "start_date": booking.start_date,
                "end_date": booking.end_date,
                "status": booking.status.value,
                "total_amount": booking.total_amount,
            },
        )

    async def mark_cancelled(
        self, db: AsyncSession, booking_id: str, payment_id: str
    ) -> None:
        result = await db.execute(_MARK_BOOKING_CANCELLED_SQL, {"booking_id": booking_id})
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Booking {booking_id} could not be marked cancelled")
        await db.execute(_MARK_PAYMENT_REFUNDED_SQL, {"payment_id": payment_id})

    async def mark_returned(
        self, db: AsyncSession, booking_id: str, returned_at: datetime
    ) -> None:
        result = await db.execute(
            _MARK_RETURNED_SQL, {"booking_id": booking_id, "returned_at": returned_at}
        )
        if result.rowcount != 1:  # type: ignore[attr-defined]
            raise InternalError(f"Booking {booking_id} could not be marked returned")

    async def adjust_box_score(
        self, db: AsyncSession, box_id: str, delta_hours: int
    ) -> bool:
        result = await db.execute(
            _ADJUST_BOX_SCORE_SQL, {"box_id": box_id, "delta": delta_hours}
        )
        return result.fetchone() is not None

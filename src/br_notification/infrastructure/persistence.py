"""DB-backed notification dispatcher: writes in-app notification rows.

Email/SMS delivery is a separate service that reads this table.
Each notify_* call commits on its own so a failure cannot touch booking state.
"""

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.br_common.enums import BookingStatus, NotificationRecipient

_INSERT_NOTIFICATION_SQL = text("""
    INSERT INTO notifications (recipient_id, recipient_type, booking_id, title, message)
    VALUES (:recipient_id, :recipient_type, :booking_id, :title, :message)
""")

_GET_OPERATOR_SQL = text("""
    SELECT s.operator_id
    FROM bookings b
    JOIN boxes x ON x.id = b.box_id
    JOIN stands s ON s.id = x.stand_id
    WHERE b.id = :booking_id
""")

_CUSTOMER_MESSAGES: dict[BookingStatus, tuple[str, str]] = {
    BookingStatus.UPCOMING: ("Booking confirmed", "Your box booking is confirmed."),
    BookingStatus.ACTIVE: ("Rental started", "Your rental period has started."),
    BookingStatus.OVERDUE: ("Box overdue", "Your rental period has ended. Please return the box."),
    BookingStatus.COMPLETED: ("Box returned", "Thank you! Your box return has been registered."),
    BookingStatus.CANCELLED: ("Booking cancelled", "Your booking has been cancelled."),
}

_OPERATOR_MESSAGES: dict[BookingStatus, tuple[str, str]] = {
    BookingStatus.UPCOMING: ("New booking", "A new booking was made at your stand."),
    BookingStatus.COMPLETED: ("Box returned", "A box at your stand has been returned."),
    BookingStatus.CANCELLED: ("Booking cancelled", "A booking at your stand was cancelled."),
}


def _message(
    table: dict[BookingStatus, tuple[str, str]], status: BookingStatus
) -> tuple[str, str]:
    return table.get(status, ("Booking updated", f"Booking status changed to {status.value}."))


class DbNotificationDispatcher:
    async def notify_customer(
        self, db: AsyncSession, booking_id: str, user_id: str, new_status: BookingStatus
    ) -> None:
        title, message = _message(_CUSTOMER_MESSAGES, new_status)
        await db.execute(
            _INSERT_NOTIFICATION_SQL,
            {
                "recipient_id": user_id,
                "recipient_type": NotificationRecipient.CUSTOMER.value,
                "booking_id": booking_id,
                "title": title,
                "message": message,
            },
        )
        await db.commit()

    async def notify_operator(
        self, db: AsyncSession, booking_id: str, new_status: BookingStatus
    ) -> None:
        result = await db.execute(_GET_OPERATOR_SQL, {"booking_id": booking_id})
        row = result.fetchone()
        if row is None or row.operator_id is None:
            return
        title, message = _message(_OPERATOR_MESSAGES, new_status)
        await db.execute(
            _INSERT_NOTIFICATION_SQL,
            {
                "recipient_id": row.operator_id,
                "recipient_type": NotificationRecipient.OPERATOR.value,
                "booking_id": booking_id,
                "title": title,
                "message": message,
            },
        )
        await db.commit()

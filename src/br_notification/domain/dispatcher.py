"""Notification dispatcher Protocol — fire-and-forget from the caller's view.

Callers invoke it after their own commit and log failures instead of
propagating them.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_common.enums import BookingStatus


class NotificationDispatcherProtocol(Protocol):
    async def notify_customer(
        self, db: AsyncSession, booking_id: str, user_id: str, new_status: BookingStatus
    ) -> None: ...

    async def notify_operator(
        self, db: AsyncSession, booking_id: str, new_status: BookingStatus
    ) -> None: ...

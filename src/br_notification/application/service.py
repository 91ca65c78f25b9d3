"""Best-effort notification fan-out used after a state change has committed."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.br_common.enums import BookingStatus
from src.br_notification.domain.dispatcher import NotificationDispatcherProtocol

_default_logger = logging.getLogger(__name__)


async def notify_best_effort(
    notifier: NotificationDispatcherProtocol,
    db: AsyncSession,
    booking_id: str,
    user_id: str,
    new_status: BookingStatus,
    logger: logging.Logger | None = None,
) -> bool:
    """Notify customer then operator. Never raises; returns False if anything failed."""
    log = logger or _default_logger
    try:
        await notifier.notify_customer(db, booking_id, user_id, new_status)
        await notifier.notify_operator(db, booking_id, new_status)
    except Exception:
        log.exception("Failed to create notifications for booking %s", booking_id)
        try:
            await db.rollback()
        except Exception:
            log.exception("Rollback after notification failure failed for booking %s", booking_id)
        return False
    return True

"""Booking application services.

BookingApplicationService creates bookings, serves booking detail and records
box returns. BookingStatusService persists status drift.

Creation serializes on the box row (SELECT ... FOR UPDATE) so two checkouts
for the same box cannot both pass the availability check.
"""

import logging
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.br_availability.domain.engine import AvailabilityEngine
from src.br_availability.domain.ranges import normalize_day
from src.br_availability.domain.repository import BoxRepositoryProtocol
from src.br_availability.infrastructure.persistence import BoxRepository
from src.br_booking.application.schemas import (
    BookingResponse,
    CreateBookingRequest,
    StatusChangeItem,
    SyncStatusesResponse,
)
from src.br_booking.domain.models import Booking, BookingWithPayment, Payment
from src.br_booking.domain.repository import BookingRepositoryProtocol
from src.br_booking.domain.score import score_delta_for_creation
from src.br_booking.domain.status import calculate_status, sync_statuses
from src.br_booking.infrastructure.persistence import BookingRepository
from src.br_common.enums import BookingStatus, BoxStatus, PaymentStatus
from src.br_common.errors import (
    BookingAccessDeniedError,
    BookingNotFoundError,
    BookingNotReturnableError,
    BoxNotFoundError,
    BoxUnavailableError,
    InvalidDateRangeError,
    ReturnNotConfirmedError,
)
from src.br_common.id_generator import new_booking_id, new_payment_id
from src.br_notification.application.service import notify_best_effort
from src.br_notification.domain.dispatcher import NotificationDispatcherProtocol
from src.br_notification.infrastructure.persistence import DbNotificationDispatcher

_RETURNABLE_STATUSES = frozenset({BookingStatus.ACTIVE, BookingStatus.OVERDUE})


def _owned(
    loaded: BookingWithPayment | None, booking_id: str, user_id: str
) -> BookingWithPayment:
    if loaded is None:
        raise BookingNotFoundError(booking_id)
    if loaded.payment.user_id != user_id:
        raise BookingAccessDeniedError(booking_id)
    return loaded


class BookingApplicationService:
    def __init__(
        self,
        repo: BookingRepositoryProtocol | None = None,
        box_repo: BoxRepositoryProtocol | None = None,
        notifier: NotificationDispatcherProtocol | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repo: BookingRepositoryProtocol = repo or BookingRepository()
        self._box_repo: BoxRepositoryProtocol = box_repo or BoxRepository()
        self._engine = AvailabilityEngine(self._box_repo)
        self._notifier: NotificationDispatcherProtocol = notifier or DbNotificationDispatcher()
        self._log = logger or logging.getLogger(__name__)

    async def create_booking(
        self,
        db: AsyncSession,
        req: CreateBookingRequest,
        user_id: str,
        now: datetime,
    ) -> BookingResponse:
        if req.start_date >= req.end_date:
            raise InvalidDateRangeError("start_date must be before end_date")
        if normalize_day(req.start_date) < normalize_day(now):
            raise InvalidDateRangeError("start_date is in the past")

        try:
            box = await self._box_repo.get_box(db, req.box_id, for_update=True)
            if box is None or box.status != BoxStatus.ACTIVE:
                raise BoxNotFoundError(req.box_id)
            if not await self._engine.is_available(db, box.id, req.start_date, req.end_date):
                raise BoxUnavailableError(box.id)

            payment = Payment(
                id=new_payment_id(),
                user_id=user_id,
                amount=req.total_amount_cents,
                currency=settings.CURRENCY,
                status=PaymentStatus.COMPLETED,
                charge_ref=req.charge_ref,
            )
            booking = Booking(
                id=new_booking_id(),
                box_id=box.id,
                stand_id=box.stand_id,
                payment_id=payment.id,
                start_date=req.start_date,
                end_date=req.end_date,
                status=(
                    BookingStatus.ACTIVE if req.start_date <= now else BookingStatus.UPCOMING
                ),
                total_amount=req.total_amount_cents,
                created_at=now,
            )
            await self._repo.insert_payment(db, payment)
            await self._repo.insert_booking(db, booking)
            score_delta = score_delta_for_creation(booking.start_date, booking.end_date)
            await self._repo.adjust_box_score(db, box.id, score_delta)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        self._log.info(
            "Booking %s created on box %s for user %s: %s..%s score_delta=%d",
            booking.id,
            box.id,
            user_id,
            booking.start_date.isoformat(),
            booking.end_date.isoformat(),
            score_delta,
        )
        await notify_best_effort(
            self._notifier, db, booking.id, user_id, booking.status, self._log
        )
        return BookingResponse.from_domain(booking, booking.status.value)

    async def get_booking(
        self, db: AsyncSession, booking_id: str, user_id: str, now: datetime
    ) -> BookingResponse:
        booking = _owned(await self._repo.get_booking(db, booking_id), booking_id, user_id).booking
        if booking.status == BookingStatus.CANCELLED:
            live = BookingStatus.CANCELLED
        else:
            live = calculate_status(
                booking.start_date, booking.end_date, now, booking.returned_at
            )
        return BookingResponse.from_domain(booking, live.value)

    async def return_box(
        self,
        db: AsyncSession,
        booking_id: str,
        user_id: str,
        now: datetime,
        confirmed_good_status: bool,
    ) -> BookingResponse:
        """Early or late return. The utilization score is left unchanged."""
        if not confirmed_good_status:
            raise ReturnNotConfirmedError()

        try:
            loaded = _owned(
                await self._repo.get_booking_for_update(db, booking_id), booking_id, user_id
            )
            booking = loaded.booking
            current = (
                booking.status
                if booking.status in (BookingStatus.CANCELLED, BookingStatus.COMPLETED)
                else calculate_status(
                    booking.start_date, booking.end_date, now, booking.returned_at
                )
            )
            if current not in _RETURNABLE_STATUSES:
                raise BookingNotReturnableError(booking_id, current.value)

            await self._repo.mark_returned(db, booking_id, now)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        self._log.info("Booking %s returned at %s (was %s)", booking_id, now.isoformat(), current.value)
        booking.status = BookingStatus.COMPLETED
        booking.returned_at = now
        await notify_best_effort(
            self._notifier, db, booking_id, user_id, BookingStatus.COMPLETED, self._log
        )
        return BookingResponse.from_domain(booking, BookingStatus.COMPLETED.value)


class BookingStatusService:
    """Persists status drift computed by the status engine in one batched update."""

    def __init__(
        self,
        repo: BookingRepositoryProtocol | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repo: BookingRepositoryProtocol = repo or BookingRepository()
        self._log = logger or logging.getLogger(__name__)

    async def sync(
        self,
        db: AsyncSession,
        now: datetime,
        user_id: str | None = None,
        booking_ids: Sequence[str] | None = None,
    ) -> SyncStatusesResponse:
        bookings = await self._repo.list_non_terminal_bookings(db, user_id, booking_ids)
        changes = sync_statuses(bookings, now)
        if not changes:
            return SyncStatusesResponse(updated=0, changes=[])

        try:
            updated = await self._repo.apply_status_changes(db, changes)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        self._log.info(
            "Status sync: %d of %d bookings drifted, %d rows updated",
            len(changes),
            len(bookings),
            updated,
        )
        return SyncStatusesResponse(
            updated=updated,
            changes=[StatusChangeItem.from_domain(c) for c in changes],
        )

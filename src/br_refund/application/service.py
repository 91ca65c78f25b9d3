"""CancellationService — cancels a booking and reconciles its refund.

One attempt, in order:
  1. Lock booking + payment rows (SELECT ... FOR UPDATE), authorize the caller.
  2. Already CANCELLED -> success=False, no refund call (idempotent retry).
  3. Refund policy; not eligible -> success=False, nothing changes.
  4. Refund > 0: ask the processor for a refund already issued for this booking
     (an earlier attempt whose response was lost). Found -> adopt it, no new
     refund. Otherwise read the charge state (authoritative) and clamp to what
     is still refundable. Nothing left -> cancel without a new refund.
  5. Issue the refund with an idempotency key derived from the policy result.
  6. Same transaction: booking CANCELLED, payment REFUNDED, box score
     decremented by the scheduled hours. Commit.
  7. Commit failure after a refund -> CriticalInconsistencyError (not retried).
  8. Notify customer and operator, best effort.

The processor call happens before the local commit and cannot be rolled back:
local state follows the money, never the other way round.
"""

import logging
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.br_booking.domain.models import Booking, BookingWithPayment, Payment
from src.br_booking.domain.repository import BookingRepositoryProtocol
from src.br_booking.domain.score import score_delta_for_reversal
from src.br_booking.infrastructure.persistence import BookingRepository
from src.br_common.cents import cents_to_display
from src.br_common.enums import BookingStatus
from src.br_common.errors import (
    BookingAccessDeniedError,
    BookingNotFoundError,
    CriticalInconsistencyError,
    RefundFailedError,
)
from src.br_notification.application.service import notify_best_effort
from src.br_notification.domain.dispatcher import NotificationDispatcherProtocol
from src.br_notification.infrastructure.persistence import DbNotificationDispatcher
from src.br_payment.domain.ledger import LedgerResolverProtocol
from src.br_payment.domain.models import RefundReceipt
from src.br_payment.infrastructure.stripe_ledger import StripeLedgerResolver
from src.br_refund.application.schemas import CancellationResult, RefundPreviewResponse
from src.br_refund.domain.policy import RefundCalculation, RefundPolicy


def _authorize(
    loaded: BookingWithPayment | None, booking_id: str, user_id: str
) -> BookingWithPayment:
    if loaded is None:
        raise BookingNotFoundError(booking_id)
    if loaded.payment.user_id != user_id:
        raise BookingAccessDeniedError(booking_id)
    return loaded


def _refund_idempotency_key(booking_id: str, calc: RefundCalculation) -> str:
    """Policy output only. Never the clamped amount, which moves with the processor balance."""
    return f"cancel:{booking_id}:{calc.refund_percentage}:{calc.refund_amount}"


def _not_cancelled(booking_id: str, reason: str, error: str) -> CancellationResult:
    return CancellationResult(
        success=False,
        booking_id=booking_id,
        refund_amount_cents=0,
        refund_amount_display=cents_to_display(0),
        refund_percentage=0,
        reason=reason,
        cancelled_at=None,
        error=error,
    )


class CancellationService:
    def __init__(
        self,
        repo: BookingRepositoryProtocol | None = None,
        ledger_resolver: LedgerResolverProtocol | None = None,
        notifier: NotificationDispatcherProtocol | None = None,
        policy: RefundPolicy | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._repo: BookingRepositoryProtocol = repo or BookingRepository()
        self._ledgers: LedgerResolverProtocol = ledger_resolver or StripeLedgerResolver()
        self._notifier: NotificationDispatcherProtocol = notifier or DbNotificationDispatcher()
        self._policy = policy or RefundPolicy(settings.CANCELLATION_TRANSACTION_FEE_CENTS)
        self._log = logger or logging.getLogger(__name__)

    async def preview_refund(
        self, db: AsyncSession, booking_id: str, user_id: str, now: datetime
    ) -> RefundPreviewResponse:
        """Read-only: what cancelling now would refund. No processor call."""
        loaded = _authorize(await self._repo.get_booking(db, booking_id), booking_id, user_id)
        calc = self._policy.calculate_refund(loaded.booking, now)
        return RefundPreviewResponse.from_calculation(booking_id, calc, can_cancel=calc.eligible)

    async def cancel_booking(
        self, db: AsyncSession, booking_id: str, user_id: str, now: datetime
    ) -> CancellationResult:
        self._log.info("Starting cancellation for booking %s", booking_id)
        receipt: RefundReceipt | None = None
        try:
            loaded = _authorize(
                await self._repo.get_booking_for_update(db, booking_id), booking_id, user_id
            )
            booking, payment = loaded.booking, loaded.payment

            if booking.status == BookingStatus.CANCELLED:
                await db.rollback()
                return _not_cancelled(
                    booking_id,
                    "Booking has already been cancelled.",
                    "Booking already cancelled",
                )

            calc = self._policy.calculate_refund(booking, now)
            self._log.info(
                "Refund calculation for booking %s: total=%d refund=%d pct=%d eligible=%s",
                booking_id,
                booking.total_amount,
                calc.refund_amount,
                calc.refund_percentage,
                calc.eligible,
            )
            if not calc.eligible:
                await db.rollback()
                return _not_cancelled(booking_id, calc.reason, "Booking cannot be cancelled")

            refund_amount, reason = 0, calc.reason
            if calc.refund_amount > 0:
                refund_amount, reason, receipt = await self._settle_refund(
                    booking, payment, calc, user_id
                )
        except Exception:
            await db.rollback()
            raise

        score_delta = score_delta_for_reversal(booking.start_date, booking.end_date)
        try:
            await self._repo.mark_cancelled(db, booking.id, payment.id)
            if not await self._repo.adjust_box_score(db, booking.box_id, score_delta):
                self._log.warning("Box %s not found for booking %s", booking.box_id, booking_id)
            await db.commit()
        except Exception as exc:
            await db.rollback()
            if receipt is not None:
                self._log.critical(
                    "Refund %s issued for booking %s but local commit failed; "
                    "manual reconciliation required",
                    receipt.refund_id,
                    booking_id,
                )
                raise CriticalInconsistencyError(booking_id, receipt.refund_id) from exc
            raise

        self._log.info(
            "Booking %s cancelled: refund=%d score_delta=%d", booking_id, refund_amount, score_delta
        )
        await notify_best_effort(
            self._notifier, db, booking_id, user_id, BookingStatus.CANCELLED, self._log
        )
        return CancellationResult(
            success=True,
            booking_id=booking_id,
            refund_amount_cents=refund_amount,
            refund_amount_display=cents_to_display(refund_amount),
            refund_percentage=calc.refund_percentage,
            reason=reason,
            cancelled_at=now,
            refund_id=receipt.refund_id if receipt else None,
        )

    async def _settle_refund(
        self,
        booking: Booking,
        payment: Payment,
        calc: RefundCalculation,
        user_id: str,
    ) -> tuple[int, str, RefundReceipt | None]:
        """Reconcile against the processor and issue the refund. Returns (amount, reason, receipt)."""
        if not payment.charge_ref:
            raise RefundFailedError(f"payment {payment.id} has no charge reference")

        ledger = self._ledgers.resolve(payment.charge_ref)
        existing = await ledger.find_refund(payment.charge_ref, booking.id)
        if existing is not None:
            self._log.warning(
                "Refund %s for booking %s already exists at processor (amount=%d); "
                "adopting it instead of issuing a new one",
                existing.refund_id,
                booking.id,
                existing.amount,
            )
            return (
                existing.amount,
                f"{calc.reason} Refund was already issued at the payment processor.",
                existing,
            )

        state = await ledger.get_charge_state(payment.charge_ref)
        if state.fully_refunded:
            self._log.warning(
                "Charge %s already fully refunded at processor (%d of %d); "
                "cancelling booking %s without a new refund",
                payment.charge_ref,
                state.amount_refunded,
                state.amount,
                booking.id,
            )
            return (
                0,
                "Payment was already refunded at the payment processor. "
                "Booking cancelled and status synchronized.",
                None,
            )

        amount = min(calc.refund_amount, state.available_to_refund)
        reason = calc.reason
        if amount < calc.refund_amount:
            self._log.warning(
                "Refund for booking %s clamped from %d to %d (available balance)",
                booking.id,
                calc.refund_amount,
                amount,
            )
            reason = (
                f"{reason} Note: refund adjusted to {cents_to_display(amount)} "
                "due to available charge balance."
            )

        metadata = {
            "booking_id": booking.id,
            "user_id": user_id,
            "refund_percentage": str(calc.refund_percentage),
            "original_refund_amount": str(calc.refund_amount),
            "adjusted_refund_amount": str(amount),
            "transaction_fee": str(calc.transaction_fee),
        }
        receipt = await ledger.issue_refund(
            payment.charge_ref,
            amount,
            metadata,
            _refund_idempotency_key(booking.id, calc),
        )
        self._log.info(
            "Refund %s issued for booking %s: amount=%d status=%s",
            receipt.refund_id,
            booking.id,
            receipt.amount,
            receipt.status,
        )
        return amount, reason, receipt

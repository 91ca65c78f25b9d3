"""Pydantic schemas for br_refund API."""

from datetime import datetime

from pydantic import BaseModel

from src.br_common.cents import cents_to_display
from src.br_refund.domain.policy import RefundCalculation


class RefundPreviewResponse(BaseModel):
    booking_id: str
    can_cancel: bool
    eligible: bool
    refund_amount_cents: int
    refund_amount_display: str
    refund_percentage: int
    transaction_fee_cents: int
    reason: str

    @classmethod
    def from_calculation(
        cls, booking_id: str, calc: RefundCalculation, can_cancel: bool
    ) -> "RefundPreviewResponse":
        return cls(
            booking_id=booking_id,
            can_cancel=can_cancel,
            eligible=calc.eligible,
            refund_amount_cents=calc.refund_amount,
            refund_amount_display=cents_to_display(calc.refund_amount),
            refund_percentage=calc.refund_percentage,
            transaction_fee_cents=calc.transaction_fee,
            reason=calc.reason,
        )


class CancellationResult(BaseModel):
    success: bool
    booking_id: str
    refund_amount_cents: int
    refund_amount_display: str
    refund_percentage: int
    reason: str
    cancelled_at: datetime | None
    refund_id: str | None = None
    error: str | None = None

"""Ledger facts read from the payment processor. The processor is authoritative."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ChargeState:
    amount: int                      # minor units charged
    amount_refunded: int             # minor units already refunded (incl. out-of-band)

    @property
    def available_to_refund(self) -> int:
        return max(0, self.amount - self.amount_refunded)

    @property
    def fully_refunded(self) -> bool:
        return self.amount_refunded >= self.amount


@dataclass(frozen=True)
class RefundReceipt:
    refund_id: str
    amount: int
    status: str

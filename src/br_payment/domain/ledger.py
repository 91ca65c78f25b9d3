"""Payment ledger Protocols.

The core never charges; it only reads charge state and issues refunds.
One adapter per processor object type, picked by the stored charge reference.
"""

from typing import Protocol

from src.br_payment.domain.models import ChargeState, RefundReceipt


class PaymentLedgerProtocol(Protocol):
    async def get_charge_state(self, charge_ref: str) -> ChargeState: ...

    async def find_refund(self, charge_ref: str, booking_id: str) -> RefundReceipt | None:
        """A live refund already issued for this booking, matched on metadata.booking_id."""
        ...

    async def issue_refund(
        self,
        charge_ref: str,
        amount: int,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> RefundReceipt: ...


class LedgerResolverProtocol(Protocol):
    def resolve(self, charge_ref: str) -> PaymentLedgerProtocol: ...

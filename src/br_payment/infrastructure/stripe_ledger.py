"""Stripe-backed payment ledger adapters.

Charge references come in three shapes:
  ch_...  Charge           -> Charges API, refund against the charge
  py_...  Payment (method-specific charge) -> find the PaymentIntent whose
          latest_charge is this payment, refund against the intent
  pi_...  PaymentIntent    -> read latest_charge, refund against the intent

Every Stripe round trip is bounded by PAYMENT_PROCESSOR_TIMEOUT_SECONDS.
Timeouts and connection failures raise PaymentProcessorUnavailableError
(retryable); money-moving calls are never assumed to have succeeded.
"""

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Awaitable
from typing import Any, TypeVar

import stripe

from config.settings import settings
from src.br_common.errors import (
    PaymentProcessorUnavailableError,
    RefundFailedError,
    UnsupportedChargeReferenceError,
)
from src.br_payment.domain.ledger import PaymentLedgerProtocol
from src.br_payment.domain.models import ChargeState, RefundReceipt

logger = logging.getLogger(__name__)

T = TypeVar("T")

_REFUND_REASON = "requested_by_customer"
_LIST_PAGE_SIZE = 100
_INTENT_CACHE_SIZE = 1024
# Refunds in these states moved no money
_DEAD_REFUND_STATUSES = frozenset({"failed", "canceled"})


class _StripeCaller:
    def __init__(self, api_key: str, timeout_seconds: float) -> None:
        self._api_key = api_key
        self._timeout = timeout_seconds

    @property
    def api_key(self) -> str:
        return self._api_key

    async def call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self._timeout)
        except TimeoutError:
            logger.error("Stripe %s timed out after %.1fs", operation, self._timeout)
            raise PaymentProcessorUnavailableError(f"{operation} timed out") from None
        except stripe.APIConnectionError as exc:
            logger.error("Stripe %s connection failure: %s", operation, exc)
            raise PaymentProcessorUnavailableError(f"{operation} unreachable") from exc
        except stripe.StripeError as exc:
            logger.error("Stripe %s failed: %s", operation, exc)
            raise RefundFailedError(f"{operation}: {exc.user_message or exc}") from exc


def _refund_receipt(refund: Any) -> RefundReceipt:
    return RefundReceipt(refund_id=refund.id, amount=refund.amount, status=refund.status)


async def _find_booking_refund(
    caller: _StripeCaller, booking_id: str, **filters: str
) -> RefundReceipt | None:
    starting_after: str | None = None
    while True:
        params: dict[str, Any] = {"limit": _LIST_PAGE_SIZE, "api_key": caller.api_key, **filters}
        if starting_after:
            params["starting_after"] = starting_after
        page = await caller.call("refund list", stripe.Refund.list_async(**params))
        for refund in page.data:
            metadata = getattr(refund, "metadata", None) or {}
            if (
                metadata.get("booking_id") == booking_id
                and refund.status not in _DEAD_REFUND_STATUSES
            ):
                return _refund_receipt(refund)
        if not page.has_more or not page.data:
            return None
        starting_after = page.data[-1].id


class StripeChargeLedger:
    """ch_ references: Charges API."""

    def __init__(self, caller: _StripeCaller) -> None:
        self._caller = caller

    async def get_charge_state(self, charge_ref: str) -> ChargeState:
        charge = await self._caller.call(
            "charge retrieve",
            stripe.Charge.retrieve_async(charge_ref, api_key=self._caller.api_key),
        )
        return ChargeState(amount=charge.amount, amount_refunded=charge.amount_refunded or 0)

    async def find_refund(self, charge_ref: str, booking_id: str) -> RefundReceipt | None:
        return await _find_booking_refund(self._caller, booking_id, charge=charge_ref)

    async def issue_refund(
        self,
        charge_ref: str,
        amount: int,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> RefundReceipt:
        refund = await self._caller.call(
            "refund create",
            stripe.Refund.create_async(
                charge=charge_ref,
                amount=amount,
                reason=_REFUND_REASON,
                metadata=metadata,
                idempotency_key=idempotency_key,
                api_key=self._caller.api_key,
            ),
        )
        return _refund_receipt(refund)


class StripePaymentIntentLedger:
    """pi_ and py_ references: refunds go against the PaymentIntent."""

    def __init__(self, caller: _StripeCaller, cache_size: int = _INTENT_CACHE_SIZE) -> None:
        self._caller = caller
        self._cache_size = cache_size
        # py_ -> pi_ lookups, least recently used first
        self._intent_ids: OrderedDict[str, str] = OrderedDict()

    async def _find_intent_for_payment(self, payment_ref: str) -> str:
        starting_after: str | None = None
        while True:
            params: dict[str, Any] = {"limit": _LIST_PAGE_SIZE, "api_key": self._caller.api_key}
            if starting_after:
                params["starting_after"] = starting_after
            page = await self._caller.call(
                "payment intent list", stripe.PaymentIntent.list_async(**params)
            )
            for intent in page.data:
                latest = intent.latest_charge
                latest_id = latest if isinstance(latest, str) else getattr(latest, "id", None)
                if latest_id == payment_ref:
                    return str(intent.id)
            if not page.has_more or not page.data:
                break
            starting_after = page.data[-1].id
        raise RefundFailedError(f"no PaymentIntent found for payment {payment_ref}")

    async def _intent_id(self, charge_ref: str) -> str:
        if charge_ref.startswith("pi_"):
            return charge_ref
        if charge_ref in self._intent_ids:
            self._intent_ids.move_to_end(charge_ref)
            return self._intent_ids[charge_ref]
        intent_id = await self._find_intent_for_payment(charge_ref)
        self._intent_ids[charge_ref] = intent_id
        while len(self._intent_ids) > self._cache_size:
            self._intent_ids.popitem(last=False)
        return intent_id

    async def get_charge_state(self, charge_ref: str) -> ChargeState:
        intent_id = await self._intent_id(charge_ref)
        intent = await self._caller.call(
            "payment intent retrieve",
            stripe.PaymentIntent.retrieve_async(
                intent_id, expand=["latest_charge"], api_key=self._caller.api_key
            ),
        )
        latest = intent.latest_charge
        if latest is not None and not isinstance(latest, str):
            return ChargeState(
                amount=latest.amount,
                amount_refunded=getattr(latest, "amount_refunded", 0) or 0,
            )
        logger.warning(
            "PaymentIntent %s has no expanded charge; assuming nothing refunded", intent_id
        )
        return ChargeState(amount=intent.amount, amount_refunded=0)

    async def find_refund(self, charge_ref: str, booking_id: str) -> RefundReceipt | None:
        intent_id = await self._intent_id(charge_ref)
        return await _find_booking_refund(self._caller, booking_id, payment_intent=intent_id)

    async def issue_refund(
        self,
        charge_ref: str,
        amount: int,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> RefundReceipt:
        intent_id = await self._intent_id(charge_ref)
        refund = await self._caller.call(
            "refund create",
            stripe.Refund.create_async(
                payment_intent=intent_id,
                amount=amount,
                reason=_REFUND_REASON,
                metadata=metadata,
                idempotency_key=idempotency_key,
                api_key=self._caller.api_key,
            ),
        )
        return _refund_receipt(refund)


class StripeLedgerResolver:
    """Picks the adapter from the charge reference prefix."""

    def __init__(
        self,
        api_key: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        caller = _StripeCaller(
            api_key if api_key is not None else settings.STRIPE_SECRET_KEY,
            timeout_seconds
            if timeout_seconds is not None
            else settings.PAYMENT_PROCESSOR_TIMEOUT_SECONDS,
        )
        self._charge_ledger = StripeChargeLedger(caller)
        self._intent_ledger = StripePaymentIntentLedger(caller)

    def resolve(self, charge_ref: str) -> PaymentLedgerProtocol:
        if charge_ref.startswith("ch_"):
            return self._charge_ledger
        if charge_ref.startswith(("py_", "pi_")):
            return self._intent_ledger
        raise UnsupportedChargeReferenceError(charge_ref)

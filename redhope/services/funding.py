# redhope/services/funding.py
"""
Funding reconciliation: hosted checkout in, exactly one funding row out.

Flow
  create_checkout  -> provider session (nothing stored locally)
  confirm_session  -> provider lookup -> settle()       (client polls back)
  handle_event     -> webhook event   -> settle()       (provider pushes)

settle() is the only writer. It dedupes on the provider's payment-intent id:
first an application-level lookup, then the UNIQUE constraint on
fundings.transaction_id for the race between two concurrent confirmations.
Both outcomes are reported as "already exists", never as an error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from redhope.errors import DuplicateTransaction, InvalidAmount, ProviderError, ValidationError
from redhope.models import Funding
from redhope.schemas import CheckoutRequest
from redhope.stores import EventStore, FundingStore

log = logging.getLogger(__name__)

FUNDING_METADATA_TYPE = "funding"
SETTLE_EVENT_TYPES = ("checkout.session.completed", "checkout.session.async_payment_succeeded")


@dataclass(frozen=True)
class CheckoutSession:
    """Provider-neutral view of a hosted checkout session."""

    id: str
    url: Optional[str] = None
    payment_intent_id: Optional[str] = None
    payment_status: str = "unpaid"
    amount_total: Optional[int] = None
    currency: Optional[str] = None
    customer_email: Optional[str] = None
    metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def is_paid(self) -> bool:
        return self.payment_status == "paid"


@dataclass(frozen=True)
class ProviderWebhookEvent:
    id: str
    type: str
    livemode: bool
    session: Optional[CheckoutSession]
    # False when the payload was accepted without a signature check
    verified: bool = True


class PaymentProvider(Protocol):
    def create_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        mode: str,
        customer_email: Optional[str],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession: ...

    def retrieve_session(self, session_id: str) -> CheckoutSession: ...

    def parse_event(self, payload: bytes, signature: str) -> ProviderWebhookEvent: ...


@dataclass(frozen=True)
class ConfirmResult:
    success: bool
    transaction_id: Optional[str]
    fund_id: Optional[int] = None
    already_exists: bool = False
    message: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success, "transactionId": self.transaction_id}
        if self.fund_id is not None:
            out["fundId"] = str(self.fund_id)
        if self.already_exists:
            out["alreadyExists"] = True
        if self.message:
            out["message"] = self.message
        return out


def parse_amount(raw: Any) -> int:
    """Whole major units, strictly positive. Anything else is InvalidAmount."""
    if raw is None or isinstance(raw, bool):
        raise InvalidAmount("Invalid amount")
    if isinstance(raw, int):
        value = raw
    elif isinstance(raw, (float, Decimal)):
        if not Decimal(str(raw)).is_finite() or Decimal(str(raw)) != Decimal(str(raw)).to_integral_value():
            raise InvalidAmount("Invalid amount")
        value = int(raw)
    elif isinstance(raw, str):
        s = raw.strip()
        digits = s[1:] if s.startswith("-") else s
        if not (digits.isascii() and digits.isdigit()):
            raise InvalidAmount("Invalid amount")
        value = int(s)
    else:
        raise InvalidAmount("Invalid amount")

    if value <= 0:
        raise InvalidAmount("Invalid amount")
    return value


def _is_email(s: str) -> bool:
    s = (s or "").strip()
    return ("@" in s) and ("." in s.split("@")[-1])


class FundingReconciliationService:
    def __init__(
        self,
        provider: PaymentProvider,
        fundings: FundingStore,
        events: Optional[EventStore] = None,
        *,
        site_domain: str,
        currency: str = "usd",
        product_name: str = "Donation to RedHope",
    ) -> None:
        self.provider = provider
        self.fundings = fundings
        self.events = events
        self.site_domain = (site_domain or "").rstrip("/")
        self.currency = (currency or "usd").lower()
        self.product_name = product_name

    # ----------------------------
    # Checkout
    # ----------------------------
    def create_checkout(self, req: CheckoutRequest) -> str:
        amount = parse_amount(req.amount)
        if req.donor_email and not _is_email(req.donor_email):
            raise ValidationError("valid donorEmail required", details={"field": "donorEmail"})

        session = self.provider.create_session(
            line_items=[
                {
                    "price_data": {
                        "currency": self.currency,
                        "unit_amount": amount * 100,
                        "product_data": {"name": self.product_name},
                    },
                    "quantity": 1,
                }
            ],
            mode="payment",
            customer_email=req.donor_email,
            metadata={
                "donorName": req.donor_name or "",
                "donorEmail": req.donor_email or "",
                "type": FUNDING_METADATA_TYPE,
            },
            success_url=f"{self.site_domain}/funding?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{self.site_domain}/funding",
        )
        if not session.url:
            raise ProviderError("Provider did not return a checkout url", details={"sessionId": session.id})

        log.info("funding: checkout session %s created (%s %s)", session.id, amount, self.currency)
        return session.url

    # ----------------------------
    # Confirmation (client returns from hosted page)
    # ----------------------------
    def confirm_session(self, session_id: Optional[str]) -> ConfirmResult:
        sid = (session_id or "").strip()
        if not sid:
            raise ValidationError("Missing session_id")

        session = self.provider.retrieve_session(sid)
        return self.settle(session)

    def settle(self, session: CheckoutSession) -> ConfirmResult:
        transaction_id = session.payment_intent_id

        if transaction_id:
            existing = self.fundings.find_by_transaction(transaction_id)
            if existing is not None:
                return self._already_exists(existing)

        if not session.is_paid:
            log.info("funding: session %s not paid yet (%s)", session.id, session.payment_status)
            return ConfirmResult(success=False, transaction_id=transaction_id, message="Payment not completed")

        if not transaction_id:
            raise ProviderError("Paid session has no payment intent", details={"sessionId": session.id})

        values = {
            "donor_name": (session.metadata.get("donorName") or session.customer_email or None),
            "donor_email": session.customer_email or session.metadata.get("donorEmail") or None,
            "amount": Decimal(int(session.amount_total or 0)) / Decimal(100),
            "currency": (session.currency or self.currency).lower()[:3],
            "transaction_id": transaction_id,
            "payment_status": session.payment_status,
        }
        try:
            fund = self.fundings.insert(values)
        except DuplicateTransaction:
            log.info("funding: concurrent settle for %s lost the insert race", transaction_id)
            existing = self.fundings.find_by_transaction(transaction_id)
            if existing is None:
                raise
            return self._already_exists(existing)

        log.info("funding: recorded %s %s %s (fund %s)", fund.amount, fund.currency, transaction_id, fund.id)
        return ConfirmResult(success=True, transaction_id=transaction_id, fund_id=fund.id)

    @staticmethod
    def _already_exists(fund: Funding) -> ConfirmResult:
        return ConfirmResult(
            success=True,
            transaction_id=fund.transaction_id,
            fund_id=fund.id,
            already_exists=True,
            message="already exists",
        )

    # ----------------------------
    # Webhook (provider pushes)
    # ----------------------------
    def handle_event(self, payload: bytes, signature: str) -> Dict[str, Any]:
        """
        Settle a pushed checkout event. The event id is stored only after the
        event was processed, so a delivery that failed is retried in full.
        """
        event = self.provider.parse_event(payload, signature)

        if self.events is not None and event.id and self.events.seen(event.id):
            log.info("funding: webhook %s replayed; skipping", event.id)
            return {"received": True, "duplicate": True}

        out: Dict[str, Any] = {"received": True, "handled": False}
        session = event.session
        if event.type in SETTLE_EVENT_TYPES and session is not None:
            if not event.verified:
                # unsigned payload: trust only what the provider reports
                session = self.provider.retrieve_session(session.id)
            if session.metadata.get("type") == FUNDING_METADATA_TYPE:
                out = {"received": True, "handled": True, **self.settle(session).as_dict()}

        if self.events is not None and event.id:
            self.events.record(
                event_id=event.id,
                etype=event.type,
                livemode=event.livemode,
                object_id=session.id if session else "",
            )
        return out

    # ----------------------------
    # Read side
    # ----------------------------
    def list_fundings(self) -> List[Funding]:
        return self.fundings.list_all()

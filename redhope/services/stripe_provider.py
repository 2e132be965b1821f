# redhope/services/stripe_provider.py
"""Stripe Checkout behind the PaymentProvider contract."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Dict, List, Optional

import stripe

from redhope.errors import ProviderError, ValidationError
from redhope.services.funding import CheckoutSession, ProviderWebhookEvent

log = logging.getLogger(__name__)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    if obj is None:
        return default
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _intent_id(raw: Any) -> Optional[str]:
    # payment_intent is an id string, or an object when expanded
    if raw is None:
        return None
    if isinstance(raw, str):
        return raw or None
    return str(_field(raw, "id") or "") or None


def session_from_object(obj: Any) -> CheckoutSession:
    md = _field(obj, "metadata") or {}
    try:
        metadata = {str(k): str(v) for k, v in dict(md).items() if v is not None}
    except (TypeError, ValueError):
        metadata = {}

    details = _field(obj, "customer_details")
    email = _field(obj, "customer_email") or _field(details, "email")

    amount = _field(obj, "amount_total")
    return CheckoutSession(
        id=str(_field(obj, "id") or ""),
        url=_field(obj, "url"),
        payment_intent_id=_intent_id(_field(obj, "payment_intent")),
        payment_status=str(_field(obj, "payment_status") or "unpaid"),
        amount_total=int(amount) if amount is not None else None,
        currency=_field(obj, "currency"),
        customer_email=email,
        metadata=metadata,
    )


class StripeCheckoutProvider:
    def __init__(self, *, webhook_secret: str = "", allow_unsigned_events: bool = False) -> None:
        self.webhook_secret = (webhook_secret or "").strip()
        self.allow_unsigned_events = bool(allow_unsigned_events)

    @staticmethod
    def _require_key() -> None:
        if not stripe.api_key:
            raise ProviderError("Payment provider not configured")

    def create_session(
        self,
        *,
        line_items: List[Dict[str, Any]],
        mode: str,
        customer_email: Optional[str],
        metadata: Dict[str, str],
        success_url: str,
        cancel_url: str,
    ) -> CheckoutSession:
        self._require_key()
        params: Dict[str, Any] = {
            "line_items": line_items,
            "mode": mode,
            "metadata": metadata,
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        if customer_email:
            params["customer_email"] = customer_email

        try:
            session = stripe.checkout.Session.create(**params)
        except stripe.error.StripeError as e:
            msg = getattr(e, "user_message", None) or str(e)
            log.error("stripe: error creating checkout session: %s", msg, exc_info=True)
            raise ProviderError("Failed to create checkout session", details={"provider": msg}) from e
        return session_from_object(session)

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self._require_key()
        try:
            session = stripe.checkout.Session.retrieve(session_id)
        except stripe.error.InvalidRequestError as e:
            log.warning("stripe: checkout session %s not retrievable: %s", session_id, e)
            raise ProviderError("Checkout session not found", details={"sessionId": session_id}) from e
        except stripe.error.StripeError as e:
            log.error("stripe: error retrieving session %s: %s", session_id, e, exc_info=True)
            raise ProviderError("Failed to confirm funding", details={"provider": str(e)[:300]}) from e

        out = session_from_object(session)
        if not out.id:
            raise ProviderError("Unexpected checkout session shape", details={"sessionId": session_id})
        return out

    def parse_event(self, payload: bytes, signature: str) -> ProviderWebhookEvent:
        verified = bool(self.webhook_secret)
        try:
            if verified:
                event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
            elif self.allow_unsigned_events:
                event = json.loads(payload.decode("utf-8"))
            else:
                raise ValidationError("Webhook signing secret not configured")
        except ValidationError:
            raise
        except stripe.error.SignatureVerificationError as e:
            raise ValidationError("Invalid webhook signature") from e
        except ValueError as e:
            raise ValidationError("Invalid webhook payload") from e

        obj = _field(_field(event, "data"), "object")
        etype = str(_field(event, "type") or "").lower()
        session = session_from_object(obj) if obj is not None and etype.startswith("checkout.session.") else None
        return ProviderWebhookEvent(
            id=str(_field(event, "id") or ""),
            type=etype,
            livemode=bool(_field(event, "livemode") or False),
            session=session,
            verified=verified,
        )

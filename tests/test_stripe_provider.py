from __future__ import annotations

import hashlib
import hmac
import json
import time

import pytest
import stripe

from redhope.errors import ProviderError, ValidationError
from redhope.services.stripe_provider import StripeCheckoutProvider, session_from_object

WEBHOOK_SECRET = "whsec_test_secret"


def _signed(payload: str, secret: str = WEBHOOK_SECRET) -> str:
    ts = int(time.time())
    sig = hmac.new(secret.encode(), f"{ts}.{payload}".encode(), hashlib.sha256).hexdigest()
    return f"t={ts},v1={sig}"


def _event(**session):
    obj = {
        "id": "cs_test_1",
        "object": "checkout.session",
        "payment_intent": "pi_test_1",
        "payment_status": "paid",
        "amount_total": 2500,
        "currency": "usd",
        "customer_details": {"email": "payer@example.com"},
        "metadata": {"donorName": "Dana", "type": "funding"},
    }
    obj.update(session)
    return json.dumps(
        {"id": "evt_1", "object": "event", "type": "checkout.session.completed", "livemode": False, "data": {"object": obj}}
    )


def test_session_from_plain_mapping():
    s = session_from_object(json.loads(_event())["data"]["object"])
    assert s.id == "cs_test_1"
    assert s.payment_intent_id == "pi_test_1"
    assert s.is_paid
    assert s.amount_total == 2500
    assert s.customer_email == "payer@example.com"
    assert s.metadata["type"] == "funding"


def test_expanded_payment_intent_is_reduced_to_its_id():
    s = session_from_object({"id": "cs_1", "payment_intent": {"id": "pi_exp", "object": "payment_intent"}})
    assert s.payment_intent_id == "pi_exp"
    assert s.payment_status == "unpaid"


def test_signed_event_is_verified():
    provider = StripeCheckoutProvider(webhook_secret=WEBHOOK_SECRET)
    payload = _event()
    event = provider.parse_event(payload.encode(), _signed(payload))
    assert event.id == "evt_1"
    assert event.type == "checkout.session.completed"
    assert event.session is not None
    assert event.session.payment_intent_id == "pi_test_1"
    assert event.verified is True


def test_bad_signature_is_rejected():
    provider = StripeCheckoutProvider(webhook_secret=WEBHOOK_SECRET)
    payload = _event()
    with pytest.raises(ValidationError):
        provider.parse_event(payload.encode(), _signed(payload, secret="whsec_other"))


def test_unsigned_events_only_when_allowed():
    payload = _event().encode()
    with pytest.raises(ValidationError):
        StripeCheckoutProvider().parse_event(payload, "")

    event = StripeCheckoutProvider(allow_unsigned_events=True).parse_event(payload, "")
    assert event.session.id == "cs_test_1"
    assert event.verified is False

    with pytest.raises(ValidationError):
        StripeCheckoutProvider(allow_unsigned_events=True).parse_event(b"{nope", "")


def test_calls_fail_without_api_key(monkeypatch):
    monkeypatch.setattr(stripe, "api_key", None)
    with pytest.raises(ProviderError):
        StripeCheckoutProvider().retrieve_session("cs_test_1")


def test_retrieve_maps_invalid_request_to_provider_error(monkeypatch):
    monkeypatch.setattr(stripe, "api_key", "sk_test_dummy")

    def _boom(session_id):
        raise stripe.error.InvalidRequestError("No such checkout.session", "id")

    monkeypatch.setattr(stripe.checkout.Session, "retrieve", _boom)
    with pytest.raises(ProviderError) as exc:
        StripeCheckoutProvider().retrieve_session("cs_missing")
    assert exc.value.message == "Checkout session not found"


def test_create_session_passes_checkout_params(monkeypatch):
    monkeypatch.setattr(stripe, "api_key", "sk_test_dummy")
    seen = {}

    def _create(**params):
        seen.update(params)
        return {"id": "cs_new", "url": "https://checkout.stripe.com/c/pay/cs_new", "payment_status": "unpaid"}

    monkeypatch.setattr(stripe.checkout.Session, "create", _create)
    session = StripeCheckoutProvider().create_session(
        line_items=[{"price_data": {"currency": "usd", "unit_amount": 500, "product_data": {"name": "x"}}, "quantity": 1}],
        mode="payment",
        customer_email=None,
        metadata={"type": "funding"},
        success_url="https://a/funding?session_id={CHECKOUT_SESSION_ID}",
        cancel_url="https://a/funding",
    )
    assert session.url.endswith("cs_new")
    assert "customer_email" not in seen
    assert seen["mode"] == "payment"

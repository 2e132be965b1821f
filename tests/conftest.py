from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

import pytest

from redhope import create_app
from redhope.config import TestingConfig
from redhope.errors import ProviderError
from redhope.extensions import db
from redhope.services import get_services
from redhope.services.funding import CheckoutSession, ProviderWebhookEvent
from redhope.services.identity import BearerIdentityVerifier

ALICE_TOKEN = "tok-alice"
ALICE_EMAIL = "alice@example.com"


class FakeProvider:
    """In-memory stand-in for Stripe Checkout."""

    def __init__(self) -> None:
        self.sessions: Dict[str, CheckoutSession] = {}
        self.created: List[Dict[str, Any]] = []
        self.retrieve_calls = 0

    def create_session(self, **params: Any) -> CheckoutSession:
        self.created.append(params)
        sid = f"cs_test_{len(self.created)}"
        session = CheckoutSession(id=sid, url=f"https://checkout.stripe.test/{sid}", metadata=params["metadata"])
        self.sessions[sid] = session
        return session

    def add_session(
        self,
        sid: str,
        *,
        intent: Optional[str] = "pi_test_1",
        status: str = "paid",
        amount_total: int = 2500,
        email: Optional[str] = "donor@example.com",
        metadata: Optional[Dict[str, str]] = None,
    ) -> CheckoutSession:
        session = CheckoutSession(
            id=sid,
            payment_intent_id=intent,
            payment_status=status,
            amount_total=amount_total,
            currency="usd",
            customer_email=email,
            metadata=metadata if metadata is not None else {"donorName": "Dana Donor", "type": "funding"},
        )
        self.sessions[sid] = session
        return session

    def retrieve_session(self, session_id: str) -> CheckoutSession:
        self.retrieve_calls += 1
        if session_id not in self.sessions:
            raise ProviderError("Checkout session not found", details={"sessionId": session_id})
        return self.sessions[session_id]

    def parse_event(self, payload: bytes, signature: str) -> ProviderWebhookEvent:
        body = json.loads(payload)
        session = self.sessions.get(body.get("session_id", ""))
        if "session" in body:
            # the payload carries its own copy of the session
            session = CheckoutSession(**body["session"])
        return ProviderWebhookEvent(
            id=body["id"],
            type=body["type"],
            livemode=False,
            session=session,
            verified=body.get("verified", True),
        )


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def app(provider):
    verifier = BearerIdentityVerifier(api_tokens={ALICE_TOKEN: ALICE_EMAIL})
    app = create_app(TestingConfig, provider=provider, verifier=verifier)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return get_services()


@pytest.fixture
def auth_headers():
    return {"Authorization": f"Bearer {ALICE_TOKEN}"}

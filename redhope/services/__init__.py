# redhope/services/__init__.py
"""
Component wiring.

build_services() runs once inside create_app(): every store shares the
session of the initialised ``db`` extension, and every service receives its
stores explicitly. Blueprints reach the container through get_services().
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from flask import current_app

from redhope.extensions import db
from redhope.services.funding import FundingReconciliationService, PaymentProvider
from redhope.services.identity import BearerIdentityVerifier, IdentityVerifier
from redhope.services.lifecycle import PatchPolicy, RequestLifecycleManager, TransitionPolicy
from redhope.services.stats import StatsAggregator
from redhope.services.stripe_provider import StripeCheckoutProvider
from redhope.services.users import UserRegistry
from redhope.stores import EventStore, FundingStore, RequestStore, UserStore

EXTENSION_KEY = "redhope"


@dataclass
class Services:
    requests: RequestLifecycleManager
    funding: FundingReconciliationService
    stats: StatsAggregator
    users: UserRegistry
    identity: IdentityVerifier


def build_services(
    app: Any,
    *,
    provider: Optional[PaymentProvider] = None,
    verifier: Optional[IdentityVerifier] = None,
) -> Services:
    cfg = app.config
    session = db.session

    request_store = RequestStore(session)
    funding_store = FundingStore(session)
    user_store = UserStore(session)

    if provider is None:
        provider = StripeCheckoutProvider(
            webhook_secret=str(cfg.get("STRIPE_WEBHOOK_SECRET") or ""),
            allow_unsigned_events=str(cfg.get("ENV")) in {"development", "testing"},
        )

    services = Services(
        requests=RequestLifecycleManager(
            request_store,
            transitions=TransitionPolicy(enforce=bool(cfg.get("ENFORCE_STATUS_TRANSITIONS"))),
            patches=PatchPolicy(restrict=bool(cfg.get("RESTRICT_REQUEST_PATCH"))),
        ),
        funding=FundingReconciliationService(
            provider,
            funding_store,
            EventStore(session),
            site_domain=str(cfg.get("SITE_DOMAIN") or ""),
            currency=str(cfg.get("FUNDING_CURRENCY") or "usd"),
            product_name=str(cfg.get("FUNDING_PRODUCT_NAME") or "Donation to RedHope"),
        ),
        stats=StatsAggregator(user_store, funding_store, request_store),
        users=UserRegistry(user_store),
        identity=verifier or BearerIdentityVerifier.from_config(cfg),
    )
    app.extensions[EXTENSION_KEY] = services
    return services


def get_services() -> Services:
    return current_app.extensions[EXTENSION_KEY]


__all__ = ["Services", "build_services", "get_services"]

import logging
import os
from typing import Any, Optional

import stripe
from flask_cors import CORS
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

log = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────
# Core singletons (bound to an app in create_app)
# ─────────────────────────────────────────────────────────────
db = SQLAlchemy()
migrate = Migrate()
cors = CORS()


# ─────────────────────────────────────────────────────────────
# Stripe initialization
# ─────────────────────────────────────────────────────────────
def _guess_stripe_mode(api_key: Optional[str]) -> str:
    if not api_key:
        return "disabled"
    if api_key.startswith(("sk_live_", "rk_live_")):
        return "live"
    if api_key.startswith(("sk_test_", "rk_test_")):
        return "test"
    return "unknown"


def _resolve_stripe_secret(app: Any) -> str:
    """
    Supports both config keys + the legacy STRIPE_SECRET env name used by the
    first deployment.
    """
    return (
        app.config.get("STRIPE_SECRET_KEY")
        or app.config.get("STRIPE_API_KEY")
        or os.getenv("STRIPE_SECRET_KEY")
        or os.getenv("STRIPE_SECRET")
        or ""
    )


def init_stripe(app: Any) -> str:
    """Configure the stripe module from app config; returns the detected mode."""
    api_key = _resolve_stripe_secret(app)
    mode = _guess_stripe_mode(api_key)

    if not api_key:
        app.logger.warning("Stripe NOT initialized: missing STRIPE_SECRET_KEY")
        return mode

    stripe.api_key = api_key
    stripe.max_network_retries = int(app.config.get("STRIPE_MAX_NETWORK_RETRIES", 2) or 0)
    try:
        stripe.set_app_info(app.config.get("BRAND_NAME", "RedHope"), version=os.getenv("GIT_COMMIT", "dev"))
    except Exception as e:
        app.logger.debug("stripe.set_app_info failed: %s", e)

    app.logger.info("Stripe initialized (%s mode)", mode)
    return mode


__all__ = [
    "db",
    "migrate",
    "cors",
    "init_stripe",
]

# redhope/config/config.py
# Canonical RedHope configuration (env-first, production-safe)

from __future__ import annotations

import os
from typing import Optional


# ----------------------------
# Env helpers
# ----------------------------
_TRUTHY = {"1", "true", "yes", "on", "y"}
_FALSY = {"0", "false", "no", "off", "n"}


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    v = os.getenv(name)
    if v is None:
        return default
    s = str(v).strip()
    return s if s else default


def _bool(name: str, default: bool = False) -> bool:
    v = _env(name)
    if v is None:
        return default
    s = v.strip().lower()
    if s in _TRUTHY:
        return True
    if s in _FALSY:
        return False
    return default


def _int(name: str, default: int) -> int:
    v = _env(name)
    if v is None:
        return default
    try:
        return int(str(v).strip())
    except ValueError:
        return default


def _clean_base_url(v: Optional[str]) -> str:
    return (v or "").strip().rstrip("/")


# ----------------------------
# Config classes
# ----------------------------
class BaseConfig:
    """
    Env-first config:
    - all important settings can be overridden via environment variables
    - safe defaults for local dev
    """

    ENV = (_env("APP_ENV") or _env("ENV") or _env("FLASK_ENV") or "base").strip().lower()

    DEBUG = _bool("FLASK_DEBUG", False)
    TESTING = _bool("TESTING", False)

    SECRET_KEY = _env("SECRET_KEY", "dev-change-me")
    BRAND_NAME = _env("BRAND_NAME", "RedHope")
    LOG_LEVEL = _env("LOG_LEVEL", "INFO")

    # Frontend origin; checkout redirects land here
    SITE_DOMAIN = _clean_base_url(_env("SITE_DOMAIN", "http://localhost:5173"))
    CORS_ORIGINS = _env("CORS_ORIGINS", "*")

    TRUST_PROXY = _bool("TRUST_PROXY", False)

    # SQLAlchemy
    SQLALCHEMY_DATABASE_URI = _env("SQLALCHEMY_DATABASE_URI", _env("DATABASE_URL", "sqlite:///redhope-dev.db"))
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}
    AUTO_CREATE_SQLITE = _bool("AUTO_CREATE_SQLITE", True)

    # Stripe (hosted checkout)
    STRIPE_SECRET_KEY = _env("STRIPE_SECRET_KEY", _env("STRIPE_SECRET", ""))
    STRIPE_WEBHOOK_SECRET = _env("STRIPE_WEBHOOK_SECRET", "")
    STRIPE_MAX_NETWORK_RETRIES = _int("STRIPE_MAX_NETWORK_RETRIES", 2)
    FUNDING_CURRENCY = (_env("FUNDING_CURRENCY", "usd") or "usd").lower()
    FUNDING_PRODUCT_NAME = _env("FUNDING_PRODUCT_NAME", "Donation to RedHope")

    # Bearer auth (static tokens as "token=email" CSV, or JWT)
    API_TOKENS = _env("API_TOKENS", "")
    JWT_SECRET = _env("JWT_SECRET", "")
    JWT_PUBLIC_KEY = _env("JWT_PUBLIC_KEY", "")
    JWT_ALG = _env("JWT_ALG", "HS256")
    API_AUDIENCE = _env("API_AUDIENCE")
    API_ISSUER = _env("API_ISSUER")
    REQUIRE_AUTH_FOR_REQUEST_LIST = _bool("REQUIRE_AUTH_FOR_REQUEST_LIST", False)

    # Donation-request policy switches (both off by default)
    ENFORCE_STATUS_TRANSITIONS = _bool("ENFORCE_STATUS_TRANSITIONS", False)
    RESTRICT_REQUEST_PATCH = _bool("RESTRICT_REQUEST_PATCH", False)

    @classmethod
    def init_app(cls, app) -> None:
        """
        Optional hook for factory boot hardening.
        Called from create_app() after app.config.from_object(...)
        """
        uri = str(app.config.get("SQLALCHEMY_DATABASE_URI") or "")

        if uri.startswith("sqlite:"):
            opts = dict(app.config.get("SQLALCHEMY_ENGINE_OPTIONS") or {})
            connect_args = dict(opts.get("connect_args") or {})
            connect_args.setdefault("check_same_thread", False)
            opts["connect_args"] = connect_args
            opts.setdefault("pool_pre_ping", True)
            app.config["SQLALCHEMY_ENGINE_OPTIONS"] = opts


class DevelopmentConfig(BaseConfig):
    ENV = "development"
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = _env("SQLALCHEMY_DATABASE_URI", "sqlite:///redhope-dev.db")


class TestingConfig(BaseConfig):
    ENV = "testing"
    TESTING = True
    DEBUG = False

    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SITE_DOMAIN = "http://localhost:5173"
    STRIPE_SECRET_KEY = ""
    STRIPE_WEBHOOK_SECRET = ""
    API_TOKENS = ""
    JWT_SECRET = ""
    REQUIRE_AUTH_FOR_REQUEST_LIST = False
    ENFORCE_STATUS_TRANSITIONS = False
    RESTRICT_REQUEST_PATCH = False


class ProductionConfig(BaseConfig):
    ENV = "production"
    DEBUG = False

    TRUST_PROXY = _bool("TRUST_PROXY", True)
    AUTO_CREATE_SQLITE = _bool("AUTO_CREATE_SQLITE", False)

    @classmethod
    def init_app(cls, app) -> None:
        super().init_app(app)

        # ---- Production guardrails (fail fast) ----
        sk = app.config.get("SECRET_KEY")
        if not sk or sk == "dev-change-me":
            raise RuntimeError("SECRET_KEY must be set to a strong random value in production.")

        site = (app.config.get("SITE_DOMAIN") or "").strip()
        if site.startswith("http://"):
            raise RuntimeError("SITE_DOMAIN must be https:// in production.")

        if _bool("FLASK_DEBUG", False):
            raise RuntimeError("FLASK_DEBUG must be 0 in production.")

# redhope/__init__.py
# RedHope: blood-donation coordination API, Flask app factory
# Goals:
# - one database handle and one set of services per process
# - proxy-correct (reverse proxy / tunnel)
# - JSON error shape everywhere, with request ids

from __future__ import annotations

import logging
import os
import time
from importlib import import_module
from typing import Any, List, Optional, Type, Union
from uuid import uuid4

from dotenv import load_dotenv
from flask import Flask, g, request
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from werkzeug.utils import import_string

# IMPORTANT: never override real env vars in prod
load_dotenv(override=False)

from redhope.config import CONFIG_BY_NAME, DevelopmentConfig  # noqa: E402
from redhope.errors import RedHopeError  # noqa: E402
from redhope.extensions import cors, db, init_stripe, migrate  # noqa: E402

# Optional Sentry
try:
    import sentry_sdk  # type: ignore
    from sentry_sdk.integrations.flask import FlaskIntegration  # type: ignore
    from sentry_sdk.integrations.logging import LoggingIntegration  # type: ignore
    from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration  # type: ignore
except ImportError:  # pragma: no cover
    sentry_sdk = None  # type: ignore

ConfigLike = Union[str, Type[Any]]

BLUEPRINTS = (
    "redhope.blueprints.donation_requests",
    "redhope.blueprints.funding",
    "redhope.blueprints.dashboard",
    "redhope.blueprints.users",
)


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _env_bool(name: str) -> Optional[bool]:
    v = os.getenv(name)
    if v is None:
        return None
    s = str(v).strip().lower()
    if s in {"1", "true", "t", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "f", "no", "n", "off"}:
        return False
    return None


def _env_mode(app: Optional[Flask] = None) -> str:
    """
    Determine environment mode deterministically.
    Priority:
      1) app.config["ENV"] (if present and meaningful)
      2) APP_ENV / ENV / FLASK_ENV env vars
      3) default "development"
    """
    if app is not None:
        v = str(app.config.get("ENV") or "").strip().lower()
        if v and v not in {"?", "base"}:
            return v

    for key in ("APP_ENV", "ENV", "FLASK_ENV"):
        val = (os.getenv(key) or "").strip().lower()
        if val:
            if val in {"prod"}:
                return "production"
            if val in {"dev"}:
                return "development"
            if val in {"test"}:
                return "testing"
            return val

    return "development"


def _resolve_config(target: Optional[ConfigLike]) -> ConfigLike:
    """
    Choose config class/module path.
    - If explicitly provided, respect it.
    - Else if FLASK_CONFIG is set, use it.
    - Else pick by environment name.
    """
    if target is None:
        target = (os.getenv("FLASK_CONFIG") or "").strip() or None
    if target is None:
        return CONFIG_BY_NAME.get(_env_mode(None), DevelopmentConfig)
    if isinstance(target, str):
        # alias ("production") or dotted path ("redhope.config.ProductionConfig")
        return CONFIG_BY_NAME.get(target.lower(), target)
    return target


def _parse_cors_origins(app: Flask) -> Union[str, List[str]]:
    raw = str(app.config.get("CORS_ORIGINS") or "*").strip()
    if raw in {"", "*"}:
        return "*"
    if "," in raw:
        return [o.strip() for o in raw.split(",") if o.strip()]
    return raw


# -----------------------------------------------------------------------------
# Logging with request_id
# -----------------------------------------------------------------------------
class _RequestIDFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        try:
            record.request_id = getattr(g, "request_id", "-")
        except RuntimeError:
            # outside an app/request context
            record.request_id = "-"
        return True


def _configure_logging(app: Flask) -> None:
    fmt = "%(asctime)s [%(levelname)s] %(name)s [rid=%(request_id)s]: %(message)s"
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt))
        handler.addFilter(_RequestIDFilter())
        root.addHandler(handler)
    else:
        for h in root.handlers:
            if not any(isinstance(f, _RequestIDFilter) for f in h.filters):
                h.addFilter(_RequestIDFilter())
            if not getattr(h, "formatter", None) or "%(request_id)s" not in getattr(h.formatter, "_fmt", ""):
                h.setFormatter(logging.Formatter(fmt))

    root.setLevel(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    logging.getLogger("werkzeug").setLevel(str(app.config.get("WERKZEUG_LOG_LEVEL", "WARNING")).upper())
    app.logger.info("Loaded config: ENV=%s DEBUG=%s", app.config.get("ENV", "?"), app.debug)


# -----------------------------------------------------------------------------
# ProxyFix (reverse proxy)
# -----------------------------------------------------------------------------
def _apply_proxyfix(app: Flask) -> None:
    trust = _env_bool("TRUST_PROXY")
    if trust is None:
        trust = bool(app.config.get("TRUST_PROXY", False))

    if not trust:
        return

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1, x_prefix=1)
    app.logger.info("ProxyFix enabled (trusting X-Forwarded-* headers).")


# -----------------------------------------------------------------------------
# Integrations
# -----------------------------------------------------------------------------
def _init_sentry(app: Flask) -> None:
    dsn = (os.getenv("SENTRY_DSN") or "").strip()
    if not dsn or not sentry_sdk:
        return
    sentry_sdk.init(
        dsn=dsn,
        integrations=[
            FlaskIntegration(),
            LoggingIntegration(level=logging.INFO, event_level=logging.ERROR),
            SqlalchemyIntegration(),
        ],
        traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0")),
        send_default_pii=False,
        environment=app.config.get("ENV", "development"),
        release=os.getenv("GIT_COMMIT"),
    )
    app.logger.info("Sentry initialized")


def _init_cors(app: Flask, cors_origins: Union[str, List[str]]) -> None:
    supports_credentials = (os.getenv("CORS_SUPPORTS_CREDENTIALS", "")).strip().lower() in {"1", "true", "yes", "on"}
    # Browser rule: cannot use credentials with wildcard origin
    if cors_origins == "*":
        supports_credentials = False

    cors.init_app(
        app,
        supports_credentials=supports_credentials,
        resources={r"/*": {"origins": cors_origins}},
        expose_headers=["X-Request-ID"],
        allow_headers=["Content-Type", "Authorization", "Stripe-Signature", "X-Request-ID"],
        methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    )


def _maybe_create_sqlite_tables(app: Flask) -> None:
    uri = (app.config.get("SQLALCHEMY_DATABASE_URI") or "").strip()
    if not uri.startswith("sqlite"):
        return
    if app.config.get("AUTO_CREATE_SQLITE", True) is not True:
        return
    import redhope.models  # noqa: F401  (register tables on the metadata)

    with app.app_context():
        db.create_all()


# -----------------------------------------------------------------------------
# Request lifecycle + errors
# -----------------------------------------------------------------------------
def _register_request_lifecycle(app: Flask) -> None:
    @app.before_request
    def _bootstrap_request():
        g.request_id = request.headers.get("X-Request-ID") or uuid4().hex
        g._start_ts = time.perf_counter()

    @app.after_request
    def _attach_request_headers(resp):
        resp.headers["X-Request-ID"] = getattr(g, "request_id", "-")
        start = getattr(g, "_start_ts", None)
        if start:
            resp.headers["X-Response-Time-ms"] = str(int((time.perf_counter() - start) * 1000))
        return resp


def _register_error_handlers(app: Flask) -> None:
    from redhope.blueprints._http import json_error

    @app.errorhandler(RedHopeError)
    def _domain_err(err: RedHopeError):
        if err.status_code >= 500:
            app.logger.error("%s: %s", type(err).__name__, err.message, exc_info=err.__cause__ is not None)
        else:
            app.logger.info("%s: %s", type(err).__name__, err.message)
        extra = {k: v for k, v in err.to_dict().items() if k not in {"code", "message"}}
        return json_error(err.message, err.status_code, extra=extra)

    @app.errorhandler(HTTPException)
    def _http_err(err: HTTPException):
        return json_error(err.description or err.name, err.code or 500, extra={"type": err.name})

    @app.errorhandler(Exception)
    def _uncaught(err: Exception):
        app.logger.exception("Unhandled error")
        return json_error("Internal Server Error", 500, extra={"type": "internal_error"})


# -----------------------------------------------------------------------------
# Health endpoints
# -----------------------------------------------------------------------------
def _register_health_endpoints(app: Flask) -> None:
    @app.get("/")
    def _root():
        return {"message": "redHope is hoping!!"}

    @app.get("/healthz")
    def _healthz():
        from sqlalchemy import text

        db_ok = True
        try:
            db.session.execute(text("SELECT 1"))
        except Exception as e:
            db.session.rollback()
            app.logger.warning("healthz: db ping failed: %s", e)
            db_ok = False
        return (
            {
                "status": "ok" if db_ok else "degraded",
                "db": db_ok,
                "stripe": app.config.get("STRIPE_MODE", "disabled"),
                "env": app.config.get("ENV", "unknown"),
                "request_id": getattr(g, "request_id", "-"),
            },
            200 if db_ok else 503,
        )

    @app.get("/version")
    def _version():
        return {
            "version": os.getenv("GIT_COMMIT", "dev"),
            "env": app.config.get("ENV"),
            "brand": app.config.get("BRAND_NAME", "RedHope"),
        }


def _register_blueprints(app: Flask) -> None:
    for dotted in BLUEPRINTS:
        bp = import_module(dotted).bp
        app.register_blueprint(bp)
        app.logger.debug("Registered blueprint: %s", bp.name)


# -----------------------------------------------------------------------------
# App Factory
# -----------------------------------------------------------------------------
def create_app(config_class: Optional[ConfigLike] = None, *, provider: Any = None, verifier: Any = None) -> Flask:
    """
    Build the app. ``provider`` (PaymentProvider) and ``verifier``
    (IdentityVerifier) replace the Stripe and bearer-token defaults.
    """
    app = Flask(__name__)

    cfg = _resolve_config(config_class)
    app.config.from_object(cfg)
    config_obj = import_string(cfg) if isinstance(cfg, str) else cfg
    if hasattr(config_obj, "init_app"):
        config_obj.init_app(app)

    env = _env_mode(app)
    app.config["ENV"] = env
    app.url_map.strict_slashes = False
    app.config.setdefault("JSON_SORT_KEYS", False)

    _apply_proxyfix(app)
    _configure_logging(app)
    _init_sentry(app)
    _init_cors(app, _parse_cors_origins(app))

    db.init_app(app)
    migrate.init_app(app, db, compare_type=True, render_as_batch=True)
    _maybe_create_sqlite_tables(app)

    app.config["STRIPE_MODE"] = init_stripe(app)

    _register_request_lifecycle(app)
    _register_error_handlers(app)

    from redhope.services import build_services

    build_services(app, provider=provider, verifier=verifier)

    _register_blueprints(app)
    _register_health_endpoints(app)

    from redhope.cli import register_cli

    register_cli(app)

    return app

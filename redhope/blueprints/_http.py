# redhope/blueprints/_http.py
# JSON response + payload helpers shared by the API blueprints.
from __future__ import annotations

from functools import wraps
from typing import Any, Dict, Optional

from flask import current_app, g, jsonify, request

from redhope.errors import ValidationError
from redhope.services import get_services


def json_response(payload: Any, status: int = 200):
    resp = jsonify(payload)
    resp.status_code = int(status)
    resp.headers.setdefault("Cache-Control", "no-store, no-cache, must-revalidate, max-age=0")
    resp.headers.setdefault("Pragma", "no-cache")
    resp.headers.setdefault("Expires", "0")
    return resp


def json_error(message: str, status: int, extra: Optional[Dict[str, Any]] = None):
    body: Dict[str, Any] = {"ok": False, "error": {"code": int(status), "message": message}}
    if extra:
        body["error"].update(extra)
    body["error"].setdefault("request_id", getattr(g, "request_id", "-"))
    return json_response(body, status)


def request_payload() -> Any:
    """Parsed JSON body; an unparseable body is a ValidationError."""
    if not request.get_data(cache=True):
        return {}
    data = request.get_json(silent=True)
    if data is None:
        raise ValidationError("Request body must be valid JSON")
    return data


def require_principal(config_flag: Optional[str] = None):
    """
    Verify the Authorization header through the injected IdentityVerifier.

    With ``config_flag`` the credential is mandatory only while that config
    value is truthy; a credential that is present is always verified.
    The verified email lands on ``g.principal_email``.
    """

    def decorator(fn):
        @wraps(fn)
        def wrapped(*args, **kwargs):
            header = request.headers.get("Authorization")
            required = bool(current_app.config.get(config_flag)) if config_flag else True
            g.principal_email = None
            if header or required:
                g.principal_email = get_services().identity.verify(header)
            return fn(*args, **kwargs)

        return wrapped

    return decorator

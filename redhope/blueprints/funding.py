"""
Funding (Stripe Checkout)

  GET  /fundings                      all settled fundings, newest first
  POST /funding-checkout-session      {amount, donorName, donorEmail} -> {url}
  GET  /funding-success?session_id=   confirm + settle (idempotent)
  POST /stripe/webhook                push-based settle (same dedupe)
"""

from __future__ import annotations

from flask import Blueprint, request

from redhope.blueprints._http import json_response, request_payload
from redhope.schemas import CheckoutRequest
from redhope.services import get_services

bp = Blueprint("funding", __name__)


@bp.get("/fundings")
def list_fundings():
    return json_response([f.as_dict() for f in get_services().funding.list_fundings()])


@bp.post("/funding-checkout-session")
def create_checkout_session():
    req = CheckoutRequest.from_payload(request_payload())
    url = get_services().funding.create_checkout(req)
    return json_response({"url": url})


@bp.get("/funding-success")
def funding_success():
    result = get_services().funding.confirm_session(request.args.get("session_id"))
    return json_response(result.as_dict())


@bp.route("/stripe/webhook", methods=["POST", "OPTIONS"])
def stripe_webhook():
    if request.method == "OPTIONS":
        return ("", 200)

    payload = request.get_data(cache=False, as_text=False)
    sig = (request.headers.get("Stripe-Signature") or "").strip()
    return json_response(get_services().funding.handle_event(payload, sig))

from __future__ import annotations

import json
import logging

from redhope import _RequestIDFilter, create_app
from redhope.config import TestingConfig
from redhope.extensions import db
from redhope.services.identity import BearerIdentityVerifier

from .conftest import ALICE_EMAIL, ALICE_TOKEN


def _create(client, **payload):
    body = {"requesterEmail": "a@x.com", "bloodGroup": "O+", "recipientDistrict": "Dhaka"}
    body.update(payload)
    return client.post("/donation-requests", json=body)


# ----------------------------
# Platform
# ----------------------------
def test_root_and_health(client):
    assert client.get("/").get_json() == {"message": "redHope is hoping!!"}

    resp = client.get("/healthz", headers={"X-Request-ID": "rid-123"})
    assert resp.status_code == 200
    assert resp.get_json()["db"] is True
    assert resp.headers["X-Request-ID"] == "rid-123"


def test_unknown_route_is_json_404(client):
    resp = client.get("/nope")
    assert resp.status_code == 404
    assert resp.get_json()["ok"] is False
    assert resp.get_json()["error"]["code"] == 404


# ----------------------------
# Donation requests
# ----------------------------
def test_request_crud_scenario(client):
    resp = _create(client)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["acknowledged"] is True
    rid = body["insertedId"]

    got = client.get(f"/donation-requests/{rid}").get_json()
    assert got["_id"] == rid
    assert got["status"] == "pending"
    assert got["requesterEmail"] == "a@x.com"
    assert got["createdAt"]

    patched = client.patch(f"/donation-requests/{rid}", json={"status": "done"}).get_json()
    assert patched == {"acknowledged": True, "matchedCount": 1, "modifiedCount": 1}
    assert client.get(f"/donation-requests/{rid}").get_json()["status"] == "done"

    deleted = client.delete(f"/donation-requests/{rid}").get_json()
    assert deleted == {"acknowledged": True, "deletedCount": 1}

    gone = client.get(f"/donation-requests/{rid}")
    assert gone.status_code == 404
    assert gone.get_json()["error"]["type"] == "not_found"


def test_missing_required_fields_is_400(client):
    resp = client.post("/donation-requests", json={"bloodGroup": "O+"})
    assert resp.status_code == 400
    err = resp.get_json()["error"]
    assert err["type"] == "validation_error"
    assert err["fields"] == ["requesterEmail"]
    assert err["request_id"]


def test_invalid_json_body_is_400(client):
    resp = client.post("/donation-requests", data="{not json", content_type="application/json")
    assert resp.status_code == 400


def test_malformed_id_is_400(client):
    resp = client.get("/donation-requests/not-an-id")
    assert resp.status_code == 400
    assert resp.get_json()["error"]["message"] == "Invalid id format"


def test_patch_and_delete_missing_record_report_zero(client):
    assert client.patch("/donation-requests/404", json={"status": "done"}).get_json()["matchedCount"] == 0
    assert client.delete("/donation-requests/404").get_json()["deletedCount"] == 0


def test_patch_with_unknown_status_is_400(client):
    rid = _create(client).get_json()["insertedId"]
    assert client.patch(f"/donation-requests/{rid}", json={"status": "approved"}).status_code == 400


def test_list_filters(client):
    _create(client)
    _create(client, requesterEmail="b@x.com", bloodGroup="A-", recipientDistrict="Khulna")

    everything = client.get("/donation-requests").get_json()
    assert len(everything) == 2
    assert everything[0]["requesterEmail"] == "b@x.com"

    mine = client.get("/donation-requests?email=a@x.com&district=Dhaka").get_json()
    assert [r["requesterEmail"] for r in mine] == ["a@x.com"]


def test_list_checks_a_supplied_credential(client):
    assert client.get("/donation-requests", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/donation-requests", headers={"Authorization": f"Bearer {ALICE_TOKEN}"}).status_code == 200


class _AuthListConfig(TestingConfig):
    REQUIRE_AUTH_FOR_REQUEST_LIST = True


def test_list_requires_credential_when_configured(provider):
    app = create_app(_AuthListConfig, provider=provider, verifier=BearerIdentityVerifier(api_tokens={ALICE_TOKEN: ALICE_EMAIL}))
    with app.app_context():
        client = app.test_client()
        resp = client.get("/donation-requests")
        assert resp.status_code == 401
        assert resp.get_json()["error"]["type"] == "unauthorized"
        assert client.get("/donation-requests", headers={"Authorization": f"Bearer {ALICE_TOKEN}"}).status_code == 200
        db.session.remove()
        db.drop_all()


# ----------------------------
# Funding
# ----------------------------
def test_checkout_session_returns_url(client, provider):
    resp = client.post("/funding-checkout-session", json={"amount": "25", "donorName": "Dana", "donorEmail": "d@x.com"})
    assert resp.status_code == 200
    assert resp.get_json()["url"].startswith("https://checkout.stripe.test/")
    assert provider.created[0]["line_items"][0]["price_data"]["unit_amount"] == 2500


def test_checkout_session_rejects_bad_amount(client, provider):
    for amount in (0, -1, "abc", 2.5, None):
        resp = client.post("/funding-checkout-session", json={"amount": amount, "donorEmail": "d@x.com"})
        assert resp.status_code == 400
        assert resp.get_json()["error"]["type"] == "invalid_amount"
    assert provider.created == []


def test_funding_success_is_idempotent(client, provider):
    provider.add_session("cs_ok", intent="pi_ok", amount_total=1500)

    first = client.get("/funding-success?session_id=cs_ok").get_json()
    assert first["success"] is True
    assert first["transactionId"] == "pi_ok"
    assert "alreadyExists" not in first

    second = client.get("/funding-success?session_id=cs_ok").get_json()
    assert second["alreadyExists"] is True
    assert second["fundId"] == first["fundId"]

    fundings = client.get("/fundings").get_json()
    assert len(fundings) == 1
    assert fundings[0]["amount"] == 15
    assert fundings[0]["transactionId"] == "pi_ok"


def test_funding_success_errors(client):
    assert client.get("/funding-success").status_code == 400
    resp = client.get("/funding-success?session_id=cs_missing")
    assert resp.status_code == 502
    assert resp.get_json()["error"]["type"] == "provider_error"


def test_webhook_settles_funding(client, provider):
    provider.add_session("cs_hook", intent="pi_hook")
    payload = json.dumps({"id": "evt_1", "type": "checkout.session.completed", "session_id": "cs_hook"})

    resp = client.post("/stripe/webhook", data=payload, headers={"Stripe-Signature": "t=1,v1=x"})
    assert resp.status_code == 200
    assert resp.get_json()["handled"] is True

    assert client.options("/stripe/webhook").status_code == 200
    assert client.get("/funding-success?session_id=cs_hook").get_json()["alreadyExists"] is True


# ----------------------------
# Dashboard + users
# ----------------------------
def test_dashboard_stats(client, provider):
    for i in range(3):
        client.post("/users", json={"email": f"donor{i}@x.com"})
    provider.add_session("cs_10", intent="pi_10", amount_total=1000)
    provider.add_session("cs_15", intent="pi_15", amount_total=1500)
    client.get("/funding-success?session_id=cs_10")
    client.get("/funding-success?session_id=cs_15")
    for _ in range(4):
        _create(client)

    assert client.get("/dashboard-stats").get_json() == {
        "totalDonors": 3,
        "totalFunding": 25,
        "totalDonationRequests": 4,
    }


def test_user_registration_and_profile(client):
    first = client.post("/users", json={"email": "Mim@X.com", "name": "Mim", "role": "admin"})
    assert first.status_code == 201
    user_id = first.get_json()["insertedId"]

    again = client.post("/users", json={"email": "mim@x.com"})
    assert again.status_code == 200
    assert again.get_json()["message"] == "user exists"

    assert client.get("/users/mim@x.com/role").get_json() == {"role": "donor"}

    upd = client.patch("/users/profile/mim@x.com", json={"district": "Sylhet", "role": "admin"}).get_json()
    assert upd["modifiedCount"] == 1
    profile = client.get("/users/profile/mim@x.com").get_json()
    assert (profile["district"], profile["role"]) == ("Sylhet", "donor")

    client.patch(f"/users/{user_id}/role", json={"role": "volunteer"})
    client.patch(f"/users/{user_id}/status", json={"status": "blocked"})
    listed = client.get("/users?role=volunteer&status=blocked").get_json()
    assert [u["email"] for u in listed] == ["mim@x.com"]

    assert client.get("/users/profile/ghost@x.com").status_code == 404


def test_request_id_filter_is_installed_once(provider):
    handler = logging.StreamHandler()
    root = logging.getLogger()
    root.addHandler(handler)
    try:
        for _ in range(3):
            app = create_app(TestingConfig, provider=provider)
            with app.app_context():
                db.session.remove()
                db.drop_all()
        assert sum(isinstance(f, _RequestIDFilter) for f in handler.filters) == 1
    finally:
        root.removeHandler(handler)

"""
Donation-request API

  POST   /donation-requests
  GET    /donation-requests?email=&status=&bloodGroup=&district=&upazila=
  GET    /donation-requests/<id>
  PATCH  /donation-requests/<id>
  DELETE /donation-requests/<id>
"""

from __future__ import annotations

from flask import Blueprint, request

from redhope.blueprints._http import json_response, request_payload, require_principal
from redhope.schemas import NewDonationRequest, RequestFilter, RequestPatch
from redhope.services import get_services

bp = Blueprint("donation_requests", __name__)


@bp.post("/donation-requests")
def create_request():
    req = NewDonationRequest.from_payload(request_payload())
    row = get_services().requests.create(req)
    return json_response({"acknowledged": True, "insertedId": str(row.id)}, 201)


@bp.get("/donation-requests")
@require_principal(config_flag="REQUIRE_AUTH_FOR_REQUEST_LIST")
def list_requests():
    rows = get_services().requests.list(RequestFilter.from_args(request.args))
    return json_response([r.as_dict() for r in rows])


@bp.get("/donation-requests/<request_id>")
def get_request(request_id: str):
    return json_response(get_services().requests.get(request_id).as_dict())


@bp.patch("/donation-requests/<request_id>")
def update_request(request_id: str):
    patch = RequestPatch.from_payload(request_payload())
    result = get_services().requests.update(request_id, patch)
    return json_response({"acknowledged": True, **result.as_dict()})


@bp.delete("/donation-requests/<request_id>")
def delete_request(request_id: str):
    result = get_services().requests.delete(request_id)
    return json_response({"acknowledged": True, **result.as_dict()})

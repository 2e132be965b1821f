"""
Users API (registration + profile glue)

  POST  /users                    idempotent registration
  GET   /users?status=&role=&bloodGroup=&district=&upazila=
  GET   /users/profile/<email>
  PATCH /users/profile/<email>    email/role/status are ignored
  GET   /users/<email>/role
  PATCH /users/<id>/status        {status: active|blocked}
  PATCH /users/<id>/role          {role: donor|volunteer|admin}
"""

from __future__ import annotations

from flask import Blueprint, request

from redhope.blueprints._http import json_response, request_payload
from redhope.schemas import UserFilter, UserProfile
from redhope.services import get_services

bp = Blueprint("users", __name__)


@bp.post("/users")
def register_user():
    user, created = get_services().users.register(UserProfile.from_payload(request_payload()))
    if not created:
        return json_response({"message": "user exists", "user": user.as_dict()})
    return json_response({"acknowledged": True, "insertedId": str(user.id), "user": user.as_dict()}, 201)


@bp.get("/users")
def list_users():
    rows = get_services().users.list(UserFilter.from_args(request.args))
    return json_response([u.as_dict() for u in rows])


@bp.get("/users/profile/<email>")
def get_profile(email: str):
    return json_response(get_services().users.get_profile(email).as_dict())


@bp.patch("/users/profile/<email>")
def update_profile(email: str):
    result = get_services().users.update_profile(email, UserProfile.from_payload(request_payload()))
    return json_response({"acknowledged": True, **result.as_dict()})


@bp.get("/users/<email>/role")
def get_role(email: str):
    return json_response({"role": get_services().users.role_of(email)})


@bp.patch("/users/<user_id>/status")
def set_status(user_id: str):
    body = request_payload()
    status = body.get("status") if isinstance(body, dict) else None
    result = get_services().users.set_status(user_id, status)
    return json_response({"acknowledged": True, **result.as_dict()})


@bp.patch("/users/<user_id>/role")
def set_role(user_id: str):
    body = request_payload()
    role = body.get("role") if isinstance(body, dict) else None
    result = get_services().users.set_role(user_id, role)
    return json_response({"acknowledged": True, **result.as_dict()})

from __future__ import annotations

import pytest

from redhope.errors import NotFound, ValidationError
from redhope.schemas import UserFilter, UserProfile


def _register(services, **payload):
    body = {"email": "Rafi@Example.com", "name": "Rafi", "bloodGroup": "A+", "district": "Dhaka"}
    body.update(payload)
    return services.users.register(UserProfile.from_payload(body))


def test_register_is_idempotent(services):
    user, created = _register(services)
    assert created is True
    assert user.email == "rafi@example.com"
    assert (user.role, user.status) == ("donor", "active")

    again, created_again = _register(services, name="Someone Else")
    assert created_again is False
    assert again.id == user.id
    assert again.name == "Rafi"


def test_register_ignores_role_and_status(services):
    user, _ = _register(services, role="admin", status="blocked")
    assert (user.role, user.status) == ("donor", "active")


def test_register_requires_email(services):
    with pytest.raises(ValidationError):
        services.users.register(UserProfile.from_payload({"name": "No Email"}))


def test_profile_update_cannot_touch_protected_fields(services):
    user, _ = _register(services)
    patch = UserProfile.from_payload({"name": "Rafi Ahmed", "role": "admin", "status": "blocked", "email": "x@y.z"})
    result = services.users.update_profile("rafi@example.com", patch)
    assert (result.matched, result.modified) == (1, 1)

    fresh = services.users.get_profile("RAFI@example.com")
    assert fresh.name == "Rafi Ahmed"
    assert (fresh.email, fresh.role, fresh.status) == ("rafi@example.com", "donor", "active")


def test_profile_update_for_unknown_user_matches_nothing(services):
    result = services.users.update_profile("ghost@example.com", UserProfile.from_payload({"name": "x"}))
    assert (result.matched, result.modified) == (0, 0)


def test_get_profile_unknown_is_not_found(services):
    with pytest.raises(NotFound):
        services.users.get_profile("ghost@example.com")


def test_role_defaults_to_donor_for_unknown_users(services):
    assert services.users.role_of("ghost@example.com") == "donor"


def test_admin_role_and_status_changes(services):
    user, _ = _register(services)
    services.users.set_role(user.id, "Volunteer")
    services.users.set_status(str(user.id), "blocked")
    assert services.users.role_of("rafi@example.com") == "volunteer"
    assert services.users.get_profile("rafi@example.com").status == "blocked"

    with pytest.raises(ValidationError):
        services.users.set_role(user.id, "superuser")
    with pytest.raises(ValidationError):
        services.users.set_status(user.id, None)


def test_list_users_filters(services):
    _register(services)
    _register(services, email="mim@example.com", bloodGroup="O-", district="Sylhet")
    assert len(services.users.list()) == 2
    only = services.users.list(UserFilter.from_args({"bloodGroup": "O-"}))
    assert [u.email for u in only] == ["mim@example.com"]

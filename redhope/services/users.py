# redhope/services/users.py
"""Registration and profile glue around the user store."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from redhope.errors import NotFound, ValidationError
from redhope.models import AccountStatus, Role, User
from redhope.schemas import UserFilter, UserProfile, parse_record_id
from redhope.stores import UpdateResult, UserStore

log = logging.getLogger(__name__)


class UserRegistry:
    def __init__(self, store: UserStore) -> None:
        self.store = store

    def register(self, profile: UserProfile) -> Tuple[User, bool]:
        """Create the user on first registration; return (user, created)."""
        if not profile.email:
            raise ValidationError("Missing required field(s)", details={"fields": ["email"]})

        existing = self.store.get_by_email(profile.email)
        if existing is not None:
            return existing, False

        values: Dict[str, Any] = dict(profile.details)
        values.update(email=profile.email, role=Role.DONOR.value, status=AccountStatus.ACTIVE.value)
        user, created = self.store.insert(values)
        if created:
            log.info("users: registered %s", user.email)
        return user, created

    def list(self, flt: Optional[UserFilter] = None) -> List[User]:
        return self.store.find((flt or UserFilter()).criteria())

    def get_profile(self, email: str) -> User:
        user = self.store.get_by_email((email or "").strip().lower())
        if user is None:
            raise NotFound("User not found")
        return user

    def update_profile(self, email: str, profile: UserProfile) -> UpdateResult:
        # UserProfile already dropped email/role/status
        user = self.store.get_by_email((email or "").strip().lower())
        return self.store.update(user, dict(profile.details))

    def role_of(self, email: str) -> str:
        user = self.store.get_by_email((email or "").strip().lower())
        return user.role if user is not None else Role.DONOR.value

    def set_role(self, user_id: Any, role: Any) -> UpdateResult:
        value = self._enum_value(Role, role, "role")
        return self.store.update(self.store.get(parse_record_id(user_id)), {"role": value})

    def set_status(self, user_id: Any, status: Any) -> UpdateResult:
        value = self._enum_value(AccountStatus, status, "status")
        return self.store.update(self.store.get(parse_record_id(user_id)), {"status": value})

    @staticmethod
    def _enum_value(enum_cls, raw: Any, name: str) -> str:
        try:
            return enum_cls(str(raw or "").strip().lower()).value
        except ValueError:
            raise ValidationError(
                f"Unrecognized {name} '{raw}'",
                details={"allowed": [m.value for m in enum_cls]},
            ) from None

from __future__ import annotations

"""
User model: donors, volunteers and admins of the platform.
"""
import enum
from typing import Any, Dict, Optional

from sqlalchemy.orm import Mapped, mapped_column

from redhope.extensions import db

from .mixins import TimestampMixin, iso


class Role(str, enum.Enum):
    DONOR = "donor"
    VOLUNTEER = "volunteer"
    ADMIN = "admin"


class AccountStatus(str, enum.Enum):
    ACTIVE = "active"
    BLOCKED = "blocked"


class User(db.Model, TimestampMixin):
    """
    Registered platform user:
      • email is the identity key (unique)
      • role/status change only through the admin operations
      • never hard-deleted
    """

    __tablename__ = "users"

    # camelCase API key -> column
    API_FIELDS = {
        "name": "name",
        "email": "email",
        "avatar": "avatar",
        "bloodGroup": "blood_group",
        "district": "district",
        "upazila": "upazila",
        "role": "role",
        "status": "status",
    }
    # never writable through the profile path
    PROTECTED_FIELDS = frozenset({"email", "role", "status"})

    # ── Identity ────────────────────────────────────────────────
    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(
        db.String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="User's email address (identity key)",
    )
    name: Mapped[Optional[str]] = mapped_column(db.String(160), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(db.String(500), nullable=True)

    # ── Donor profile ───────────────────────────────────────────
    blood_group: Mapped[Optional[str]] = mapped_column(db.String(8), nullable=True, index=True)
    district: Mapped[Optional[str]] = mapped_column(db.String(120), nullable=True, index=True)
    upazila: Mapped[Optional[str]] = mapped_column(db.String(120), nullable=True, index=True)

    # ── Roles/Status ────────────────────────────────────────────
    role: Mapped[str] = mapped_column(
        db.String(20),
        nullable=False,
        default=Role.DONOR.value,
        index=True,
        doc="donor / volunteer / admin",
    )
    status: Mapped[str] = mapped_column(
        db.String(20),
        nullable=False,
        default=AccountStatus.ACTIVE.value,
        index=True,
        doc="active / blocked",
    )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "_id": str(self.id),
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "bloodGroup": self.blood_group,
            "district": self.district,
            "upazila": self.upazila,
            "role": self.role,
            "status": self.status,
            "createdAt": iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User {self.email} ({self.role})>"

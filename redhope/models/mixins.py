# redhope/models/mixins.py
"""Shared SQLAlchemy mixins."""

from datetime import datetime, timezone

from sqlalchemy import event

from redhope.extensions import db


def utcnow() -> datetime:
    """Naive UTC timestamp (the columns are timezone-less)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """Adds created_at and updated_at columns with auto-refresh behavior."""

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False, index=True)
    updated_at = db.Column(
        db.DateTime,
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    @staticmethod
    def _set_updated_at(mapper, connection, target):
        target.updated_at = utcnow()

    @classmethod
    def __declare_last__(cls):
        event.listen(cls, "before_update", cls._set_updated_at)


def iso(dt) -> "str | None":
    return dt.isoformat() if dt else None

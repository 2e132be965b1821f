# redhope/stores.py
"""
Store adapters over the SQLAlchemy session.

Each store owns one table. They are created once in the app factory with the
session of the already-initialised ``db`` extension and handed to the
services; nothing here opens connections on its own.

Every SQLAlchemy failure is rolled back and re-raised as ``StoreError`` so
callers never see driver exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from sqlalchemy import delete as sa_delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from redhope.errors import DuplicateTransaction, StoreError
from redhope.models import DonationRequest, Funding, ProviderEvent, User

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class UpdateResult:
    matched: int
    modified: int

    def as_dict(self) -> Dict[str, int]:
        return {"matchedCount": self.matched, "modifiedCount": self.modified}


@dataclass(frozen=True)
class DeleteResult:
    deleted: int

    def as_dict(self) -> Dict[str, int]:
        return {"deletedCount": self.deleted}


class _BaseStore:
    def __init__(self, session: Session) -> None:
        self.session = session

    def _tx_commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _guard(self, op: str, fn: Callable[[], T]) -> T:
        try:
            return fn()
        except SQLAlchemyError as e:
            self.session.rollback()
            log.error("store: %s failed: %s", op, e, exc_info=True)
            raise StoreError(f"{op} failed") from e

    def _update_fields(self, row: Any, values: Dict[str, Any]) -> UpdateResult:
        changed = False
        for attr, value in values.items():
            if getattr(row, attr) != value:
                setattr(row, attr, value)
                changed = True
        if changed:
            self._tx_commit()
        return UpdateResult(matched=1, modified=1 if changed else 0)


# ----------------------------
# Donation requests
# ----------------------------
class RequestStore(_BaseStore):
    def insert(self, values: Dict[str, Any]) -> DonationRequest:
        def _do() -> DonationRequest:
            row = DonationRequest(**values)
            self.session.add(row)
            self._tx_commit()
            return row

        return self._guard("insert donation request", _do)

    def get(self, request_id: int) -> Optional[DonationRequest]:
        return self._guard("get donation request", lambda: self.session.get(DonationRequest, request_id))

    def find(self, criteria: Dict[str, Any]) -> List[DonationRequest]:
        """Exact-match on every column in ``criteria``; newest first."""

        def _do() -> List[DonationRequest]:
            stmt = select(DonationRequest)
            for attr, value in criteria.items():
                stmt = stmt.where(getattr(DonationRequest, attr) == value)
            stmt = stmt.order_by(DonationRequest.created_at.desc(), DonationRequest.id.desc())
            return list(self.session.execute(stmt).scalars().all())

        return self._guard("list donation requests", _do)

    def update(self, request_id: int, values: Dict[str, Any]) -> UpdateResult:
        def _do() -> UpdateResult:
            row = self.session.get(DonationRequest, request_id)
            if row is None:
                return UpdateResult(matched=0, modified=0)
            return self._update_fields(row, values)

        return self._guard("update donation request", _do)

    def delete(self, request_id: int) -> DeleteResult:
        def _do() -> DeleteResult:
            res = self.session.execute(sa_delete(DonationRequest).where(DonationRequest.id == request_id))
            self._tx_commit()
            return DeleteResult(deleted=int(getattr(res, "rowcount", 0) or 0))

        return self._guard("delete donation request", _do)

    def count(self) -> int:
        return self._guard(
            "count donation requests",
            lambda: int(self.session.execute(select(func.count(DonationRequest.id))).scalar_one()),
        )


# ----------------------------
# Fundings
# ----------------------------
class FundingStore(_BaseStore):
    def find_by_transaction(self, transaction_id: str) -> Optional[Funding]:
        return self._guard(
            "lookup funding",
            lambda: self.session.execute(
                select(Funding).where(Funding.transaction_id == transaction_id)
            ).scalar_one_or_none(),
        )

    def insert(self, values: Dict[str, Any]) -> Funding:
        """
        Insert a funding row. Raises DuplicateTransaction when the unique
        transaction_id constraint rejects it (a concurrent confirmation won).
        """
        row = Funding(**values)
        try:
            self.session.add(row)
            self._tx_commit()
            return row
        except IntegrityError as e:
            self.session.rollback()
            tid = str(values.get("transaction_id") or "")
            if tid and self.find_by_transaction(tid) is not None:
                raise DuplicateTransaction(f"transaction {tid} already recorded") from e
            log.error("store: insert funding rejected: %s", e)
            raise StoreError("insert funding failed") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            log.error("store: insert funding failed: %s", e, exc_info=True)
            raise StoreError("insert funding failed") from e

    def list_all(self) -> List[Funding]:
        return self._guard(
            "list fundings",
            lambda: list(
                self.session.execute(select(Funding).order_by(Funding.created_at.desc(), Funding.id.desc()))
                .scalars()
                .all()
            ),
        )

    def total_amount(self) -> Decimal:
        return self._guard(
            "sum fundings",
            lambda: Decimal(self.session.execute(select(func.coalesce(func.sum(Funding.amount), 0))).scalar_one() or 0),
        )


# ----------------------------
# Users
# ----------------------------
class UserStore(_BaseStore):
    def get(self, user_id: int) -> Optional[User]:
        return self._guard("get user", lambda: self.session.get(User, user_id))

    def get_by_email(self, email: str) -> Optional[User]:
        return self._guard(
            "get user by email",
            lambda: self.session.execute(select(User).where(User.email == email)).scalar_one_or_none(),
        )

    def insert(self, values: Dict[str, Any]) -> Tuple[User, bool]:
        """Insert a user; on an email collision return (row that won, False)."""
        row = User(**values)
        try:
            self.session.add(row)
            self._tx_commit()
            return row, True
        except IntegrityError as e:
            self.session.rollback()
            existing = self.get_by_email(str(values.get("email") or ""))
            if existing is not None:
                return existing, False
            raise StoreError("insert user failed") from e
        except SQLAlchemyError as e:
            self.session.rollback()
            log.error("store: insert user failed: %s", e, exc_info=True)
            raise StoreError("insert user failed") from e

    def find(self, criteria: Dict[str, Any]) -> List[User]:
        def _do() -> List[User]:
            stmt = select(User)
            for attr, value in criteria.items():
                stmt = stmt.where(getattr(User, attr) == value)
            stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
            return list(self.session.execute(stmt).scalars().all())

        return self._guard("list users", _do)

    def update(self, user: Optional[User], values: Dict[str, Any]) -> UpdateResult:
        if user is None:
            return UpdateResult(matched=0, modified=0)
        return self._guard("update user", lambda: self._update_fields(user, values))

    def count_by_role(self, role: str) -> int:
        return self._guard(
            "count users",
            lambda: int(self.session.execute(select(func.count(User.id)).where(User.role == role)).scalar_one()),
        )


# ----------------------------
# Provider webhook events
# ----------------------------
class EventStore(_BaseStore):
    def seen(self, event_id: str) -> bool:
        return self._guard(
            "lookup provider event",
            lambda: self.session.execute(
                select(ProviderEvent.id).where(ProviderEvent.event_id == event_id[:120])
            ).first()
            is not None,
        )

    def record(self, *, event_id: str, etype: str, livemode: bool, object_id: str) -> bool:
        """Store a webhook event; False when the event id was already stored."""
        try:
            self.session.add(
                ProviderEvent(
                    event_id=event_id[:120],
                    type=etype[:120],
                    livemode=bool(livemode),
                    object_id=(object_id[:120] if object_id else None),
                )
            )
            self._tx_commit()
            return True
        except IntegrityError:
            self.session.rollback()
            return False
        except SQLAlchemyError as e:
            self.session.rollback()
            log.error("store: record provider event failed: %s", e, exc_info=True)
            raise StoreError("record provider event failed") from e


__all__ = [
    "DeleteResult",
    "EventStore",
    "FundingStore",
    "RequestStore",
    "UpdateResult",
    "UserStore",
]

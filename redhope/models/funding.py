from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from redhope.extensions import db

from .mixins import TimestampMixin, iso


class Funding(db.Model, TimestampMixin):
    """A settled monetary donation. Written once at confirmation, never mutated."""

    __tablename__ = "fundings"
    __table_args__ = (CheckConstraint("amount >= 0", name="ck_fundings_amount_nonneg"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    donor_name: Mapped[Optional[str]] = mapped_column(db.String(160), nullable=True)
    donor_email: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True, index=True)

    amount: Mapped[Decimal] = mapped_column(
        db.Numeric(12, 2),
        nullable=False,
        doc="Amount in major currency units (dollars).",
    )
    currency: Mapped[str] = mapped_column(db.String(3), nullable=False, default="usd")

    # The only dedupe key between a provider payment and a funding row.
    transaction_id: Mapped[str] = mapped_column(
        db.String(255),
        unique=True,
        index=True,
        nullable=False,
        doc="Stripe PaymentIntent id (pi_...).",
    )
    payment_status: Mapped[str] = mapped_column(db.String(40), nullable=False, default="paid")

    def as_dict(self) -> Dict[str, Any]:
        amount = Decimal(self.amount or 0)
        return {
            "_id": str(self.id),
            "donorName": self.donor_name,
            "donorEmail": self.donor_email,
            "amount": int(amount) if amount == amount.to_integral_value() else float(amount),
            "currency": self.currency,
            "transactionId": self.transaction_id,
            "paymentStatus": self.payment_status,
            "createdAt": iso(self.created_at),
        }

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Funding {self.transaction_id} {self.amount} {self.currency}>"

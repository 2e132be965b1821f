from __future__ import annotations

# -----------------------------------------------------------------------------
# DonationRequest Model
# A request for blood at a recipient location, moved through
# pending -> inprogress -> done (or canceled) by requesters and volunteers.
# -----------------------------------------------------------------------------
import enum
from typing import Any, Dict, FrozenSet, Optional

from sqlalchemy import Index
from sqlalchemy.orm import Mapped, mapped_column

from redhope.extensions import db

from .mixins import TimestampMixin, iso


class RequestStatus(str, enum.Enum):
    PENDING = "pending"
    INPROGRESS = "inprogress"
    DONE = "done"
    CANCELED = "canceled"

    @classmethod
    def parse(cls, raw: Any) -> Optional["RequestStatus"]:
        """Return the matching member, or None for an unrecognised value."""
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return None


# Legal successors of each status. Enforced only when the transition policy is on.
TRANSITIONS: Dict[RequestStatus, FrozenSet[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({RequestStatus.INPROGRESS, RequestStatus.CANCELED}),
    RequestStatus.INPROGRESS: frozenset({RequestStatus.DONE, RequestStatus.CANCELED}),
    RequestStatus.DONE: frozenset(),
    RequestStatus.CANCELED: frozenset(),
}


class DonationRequest(db.Model, TimestampMixin):
    __tablename__ = "donation_requests"
    __table_args__ = (
        Index("ix_donation_requests_status_created", "status", "created_at"),
        Index("ix_donation_requests_location", "recipient_district", "recipient_upazila"),
    )

    # camelCase API key -> column
    API_FIELDS = {
        "requesterName": "requester_name",
        "requesterEmail": "requester_email",
        "recipientName": "recipient_name",
        "recipientDistrict": "recipient_district",
        "recipientUpazila": "recipient_upazila",
        "hospitalName": "hospital_name",
        "fullAddress": "full_address",
        "bloodGroup": "blood_group",
        "donationDate": "donation_date",
        "donationTime": "donation_time",
        "requestMessage": "request_message",
        "status": "status",
        "donorName": "donor_name",
        "donorEmail": "donor_email",
    }

    # ---- Identifiers ----
    id: Mapped[int] = mapped_column(primary_key=True)
    requester_name: Mapped[Optional[str]] = mapped_column(db.String(160), nullable=True)
    requester_email: Mapped[str] = mapped_column(db.String(255), nullable=False, index=True)

    # ---- Recipient ----
    recipient_name: Mapped[Optional[str]] = mapped_column(db.String(160), nullable=True)
    recipient_district: Mapped[Optional[str]] = mapped_column(db.String(120), nullable=True, index=True)
    recipient_upazila: Mapped[Optional[str]] = mapped_column(db.String(120), nullable=True, index=True)
    hospital_name: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True)
    full_address: Mapped[Optional[str]] = mapped_column(db.String(500), nullable=True)
    blood_group: Mapped[str] = mapped_column(db.String(8), nullable=False, index=True)

    # ---- Scheduling / contact (free-form) ----
    donation_date: Mapped[Optional[str]] = mapped_column(db.String(40), nullable=True)
    donation_time: Mapped[Optional[str]] = mapped_column(db.String(40), nullable=True)
    request_message: Mapped[Optional[str]] = mapped_column(db.Text, nullable=True)

    # ---- Lifecycle ----
    status: Mapped[str] = mapped_column(
        db.String(20),
        nullable=False,
        default=RequestStatus.PENDING.value,
        index=True,
        doc="pending / inprogress / done / canceled",
    )
    donor_name: Mapped[Optional[str]] = mapped_column(
        db.String(160),
        nullable=True,
        doc="Donor who took the request (set when it goes inprogress).",
    )
    donor_email: Mapped[Optional[str]] = mapped_column(db.String(255), nullable=True)

    @property
    def status_enum(self) -> Optional[RequestStatus]:
        return RequestStatus.parse(self.status)

    def as_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"_id": str(self.id)}
        for key, attr in self.API_FIELDS.items():
            data[key] = getattr(self, attr)
        data["createdAt"] = iso(self.created_at)
        return data

    def __repr__(self) -> str:  # pragma: no cover
        return f"<DonationRequest {self.id} {self.blood_group} {self.status}>"

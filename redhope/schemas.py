# redhope/schemas.py
"""
Typed request payloads.

JSON bodies and query strings are normalized here, at the HTTP boundary,
into frozen dataclasses the services accept. Keys follow the public
camelCase contract; attributes use the model column names.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from redhope.errors import ValidationError
from redhope.models import DonationRequest, User

# Keys a client may echo back that are record facts, not patchable data.
STORAGE_FACT_KEYS = frozenset({"_id", "id", "createdAt", "created_at", "updatedAt", "updated_at"})


def _clean_str(key: str, raw: Any, *, max_len: int = 500) -> Optional[str]:
    if raw is None:
        return None
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float)):
        raise ValidationError(f"'{key}' must be a string", details={"field": key})
    s = str(raw).strip()
    return s[:max_len] if s else None


def _clean_email(key: str, raw: Any) -> Optional[str]:
    s = _clean_str(key, raw, max_len=255)
    return s.lower() if s else None


def _require_mapping(data: Any) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValidationError("JSON object body required")
    return data


def _map_fields(data: Mapping[str, Any], api_fields: Mapping[str, str]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, attr in api_fields.items():
        if key not in data:
            continue
        if attr.endswith("email"):
            out[attr] = _clean_email(key, data[key])
        else:
            out[attr] = _clean_str(key, data[key], max_len=4000 if attr == "request_message" else 500)
    return out


# ----------------------------
# Donation requests
# ----------------------------
@dataclass(frozen=True)
class NewDonationRequest:
    requester_email: Optional[str]
    blood_group: Optional[str]
    status: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Any) -> "NewDonationRequest":
        values = _map_fields(_require_mapping(data), DonationRequest.API_FIELDS)
        return cls(
            requester_email=values.pop("requester_email", None),
            blood_group=values.pop("blood_group", None),
            status=values.pop("status", None),
            details=values,
        )


@dataclass(frozen=True)
class RequestPatch:
    values: Dict[str, Any]
    storage_facts: Tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, data: Any) -> "RequestPatch":
        body = _require_mapping(data)
        unknown = sorted(k for k in body if k not in DonationRequest.API_FIELDS and k not in STORAGE_FACT_KEYS)
        if unknown:
            raise ValidationError("Unknown field(s) in patch", details={"fields": unknown})
        return cls(
            values=_map_fields(body, DonationRequest.API_FIELDS),
            storage_facts=tuple(sorted(k for k in body if k in STORAGE_FACT_KEYS)),
        )


@dataclass(frozen=True)
class RequestFilter:
    requester_email: Optional[str] = None
    status: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "RequestFilter":
        return cls(
            requester_email=_clean_email("email", args.get("email")),
            status=_clean_str("status", args.get("status")),
            blood_group=_clean_str("bloodGroup", args.get("bloodGroup")),
            district=_clean_str("district", args.get("district")),
            upazila=_clean_str("upazila", args.get("upazila")),
        )

    def criteria(self) -> Dict[str, Any]:
        """Column -> value for every supplied option (conjunctive)."""
        pairs = {
            "requester_email": self.requester_email,
            "status": self.status,
            "blood_group": self.blood_group,
            "recipient_district": self.district,
            "recipient_upazila": self.upazila,
        }
        return {k: v for k, v in pairs.items() if v is not None}


# ----------------------------
# Funding
# ----------------------------
@dataclass(frozen=True)
class CheckoutRequest:
    amount: Any
    donor_name: Optional[str]
    donor_email: Optional[str]

    @classmethod
    def from_payload(cls, data: Any) -> "CheckoutRequest":
        body = _require_mapping(data)
        return cls(
            amount=body.get("amount"),
            donor_name=_clean_str("donorName", body.get("donorName"), max_len=160),
            donor_email=_clean_email("donorEmail", body.get("donorEmail")),
        )


# ----------------------------
# Users
# ----------------------------
@dataclass(frozen=True)
class UserProfile:
    email: Optional[str]
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, data: Any) -> "UserProfile":
        values = _map_fields(_require_mapping(data), User.API_FIELDS)
        email = values.pop("email", None)
        for protected in User.PROTECTED_FIELDS:
            values.pop(protected, None)
        return cls(email=email, details=values)


@dataclass(frozen=True)
class UserFilter:
    status: Optional[str] = None
    role: Optional[str] = None
    blood_group: Optional[str] = None
    district: Optional[str] = None
    upazila: Optional[str] = None

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "UserFilter":
        return cls(
            status=_clean_str("status", args.get("status")),
            role=_clean_str("role", args.get("role")),
            blood_group=_clean_str("bloodGroup", args.get("bloodGroup")),
            district=_clean_str("district", args.get("district")),
            upazila=_clean_str("upazila", args.get("upazila")),
        )

    def criteria(self) -> Dict[str, Any]:
        pairs = {
            "status": self.status,
            "role": self.role,
            "blood_group": self.blood_group,
            "district": self.district,
            "upazila": self.upazila,
        }
        return {k: v for k, v in pairs.items() if v is not None}


def parse_record_id(raw: Any) -> int:
    """Record ids are positive integers; anything else is a ValidationError."""
    s = str(raw if raw is not None else "").strip()
    if not (s.isascii() and s.isdigit()) or int(s) <= 0:
        raise ValidationError("Invalid id format", details={"id": s[:64]})
    return int(s)


__all__ = [
    "CheckoutRequest",
    "NewDonationRequest",
    "RequestFilter",
    "RequestPatch",
    "STORAGE_FACT_KEYS",
    "UserFilter",
    "UserProfile",
    "parse_record_id",
]

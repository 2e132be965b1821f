from __future__ import annotations

from redhope.extensions import db
from redhope.models.donation_request import TRANSITIONS, DonationRequest, RequestStatus
from redhope.models.funding import Funding
from redhope.models.provider_event import ProviderEvent
from redhope.models.user import AccountStatus, Role, User

__all__ = [
    "db",
    "AccountStatus",
    "DonationRequest",
    "Funding",
    "ProviderEvent",
    "RequestStatus",
    "Role",
    "TRANSITIONS",
    "User",
]

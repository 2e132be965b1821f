# redhope/services/stats.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Union

from redhope.errors import AggregationError, StoreError
from redhope.models import Role
from redhope.stores import FundingStore, RequestStore, UserStore


def _money(v: Decimal) -> Union[int, float]:
    return int(v) if v == v.to_integral_value() else float(v)


@dataclass(frozen=True)
class DashboardStats:
    total_donors: int
    total_funding: Decimal
    total_donation_requests: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalDonors": self.total_donors,
            "totalFunding": _money(self.total_funding),
            "totalDonationRequests": self.total_donation_requests,
        }


class StatsAggregator:
    """Dashboard counters read straight from the stores on every call."""

    def __init__(self, users: UserStore, fundings: FundingStore, requests: RequestStore) -> None:
        self.users = users
        self.fundings = fundings
        self.requests = requests

    def stats(self) -> DashboardStats:
        try:
            return DashboardStats(
                total_donors=self.users.count_by_role(Role.DONOR.value),
                total_funding=self.fundings.total_amount(),
                total_donation_requests=self.requests.count(),
            )
        except StoreError as e:
            raise AggregationError("Failed to get dashboard stats") from e

from __future__ import annotations

from decimal import Decimal

import pytest

from redhope.errors import AggregationError, StoreError
from redhope.extensions import db
from redhope.models import DonationRequest, Funding, User
from redhope.services.stats import DashboardStats, StatsAggregator


def _seed():
    for i in range(3):
        db.session.add(User(email=f"donor{i}@example.com"))
    db.session.add(User(email="vol@example.com", role="volunteer"))
    db.session.add(User(email="root@example.com", role="admin"))
    for amount, tid in ((10, "pi_a"), (15, "pi_b")):
        db.session.add(Funding(amount=Decimal(amount), currency="usd", transaction_id=tid))
    for _ in range(4):
        db.session.add(DonationRequest(requester_email="r@example.com", blood_group="B+"))
    db.session.commit()


def test_empty_store_reports_zeros(services):
    assert services.stats.stats().as_dict() == {"totalDonors": 0, "totalFunding": 0, "totalDonationRequests": 0}


def test_counts_only_donors_and_sums_fundings(services):
    _seed()
    assert services.stats.stats().as_dict() == {"totalDonors": 3, "totalFunding": 25, "totalDonationRequests": 4}


def test_fractional_totals_stay_fractional():
    stats = DashboardStats(total_donors=0, total_funding=Decimal("12.50"), total_donation_requests=0)
    assert stats.as_dict()["totalFunding"] == 12.5


class _BrokenStore:
    def count_by_role(self, role):
        raise StoreError("count users failed")

    def total_amount(self):
        return Decimal(0)

    def count(self):
        return 0


def test_store_failure_becomes_aggregation_error():
    broken = _BrokenStore()
    with pytest.raises(AggregationError):
        StatsAggregator(broken, broken, broken).stats()

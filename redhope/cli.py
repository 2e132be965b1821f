import random
from decimal import Decimal
from uuid import uuid4

import click
from faker import Faker
from flask import Flask
from flask.cli import with_appcontext

from redhope.extensions import db

fake = Faker()

BLOOD_GROUPS = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")


@click.command("create-db")
@with_appcontext
def create_db():
    """Create all tables on the configured database."""
    import redhope.models  # noqa: F401

    db.create_all()
    click.secho("✅ Tables created", fg="bright_green", bold=True)


@click.command("seed-demo")
@click.option("--users", default=5, show_default=True)
@click.option("--requests", "request_count", default=8, show_default=True)
@click.option("--fundings", default=3, show_default=True)
@click.option("--clear", is_flag=True)
@with_appcontext
def seed_demo(users, request_count, fundings, clear):
    """Seed demo data."""
    from redhope.models import DonationRequest, Funding, User  # lazy import

    if clear:
        _clear_data(DonationRequest, Funding, User)
    emails = _seed_users(users, User)
    _seed_requests(request_count, emails, DonationRequest)
    _seed_fundings(fundings, Funding)
    db.session.commit()
    click.secho("✅ Demo data seeded!", fg="bright_green", bold=True)


def register_cli(app: Flask) -> None:
    app.cli.add_command(create_db)
    app.cli.add_command(seed_demo)


# ---------- Helpers ----------
def _clear_data(*models):
    click.secho("🧹 Clearing demo data…", fg="yellow")
    for model in models:
        deleted = model.query.delete()
        click.secho(f"  ↳ {deleted} {model.__name__} removed", fg="yellow")


def _seed_users(count, User):
    emails = []
    for _ in range(count):
        email = fake.unique.email().lower()
        db.session.add(
            User(
                email=email,
                name=fake.name(),
                blood_group=random.choice(BLOOD_GROUPS),
                district=fake.city(),
                upazila=fake.street_name(),
            )
        )
        emails.append(email)
    click.secho(f"  ↳ {count} users", fg="cyan")
    return emails or [fake.email().lower()]


def _seed_requests(count, emails, DonationRequest):
    for _ in range(count):
        db.session.add(
            DonationRequest(
                requester_name=fake.name(),
                requester_email=random.choice(emails),
                recipient_name=fake.name(),
                recipient_district=fake.city(),
                recipient_upazila=fake.street_name(),
                hospital_name=f"{fake.last_name()} General Hospital",
                full_address=fake.address().replace("\n", ", "),
                blood_group=random.choice(BLOOD_GROUPS),
                donation_date=fake.future_date().isoformat(),
                donation_time=f"{random.randint(8, 20):02d}:00",
                request_message=fake.sentence(),
            )
        )
    click.secho(f"  ↳ {count} donation requests", fg="cyan")


def _seed_fundings(count, Funding):
    for _ in range(count):
        db.session.add(
            Funding(
                donor_name=fake.name(),
                donor_email=fake.email().lower(),
                amount=Decimal(random.randint(5, 200)),
                currency="usd",
                transaction_id=f"pi_demo_{uuid4().hex[:16]}",
                payment_status="paid",
            )
        )
    click.secho(f"  ↳ {count} fundings", fg="cyan")

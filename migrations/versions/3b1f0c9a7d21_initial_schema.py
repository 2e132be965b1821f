"""initial schema

Revision ID: 3b1f0c9a7d21
Revises:
Create Date: 2026-10-18 09:12:40.118302
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3b1f0c9a7d21"
down_revision = None
branch_labels = None
depends_on = None


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------
def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    # --- users ---
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=True),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("blood_group", sa.String(length=8), nullable=True),
        sa.Column("district", sa.String(length=120), nullable=True),
        sa.Column("upazila", sa.String(length=120), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False),
        *_timestamps(),
    )
    with op.batch_alter_table("users") as batch_op:
        batch_op.create_index(batch_op.f("ix_users_email"), ["email"], unique=True)
        batch_op.create_index(batch_op.f("ix_users_blood_group"), ["blood_group"], unique=False)
        batch_op.create_index(batch_op.f("ix_users_district"), ["district"], unique=False)
        batch_op.create_index(batch_op.f("ix_users_upazila"), ["upazila"], unique=False)
        batch_op.create_index(batch_op.f("ix_users_role"), ["role"], unique=False)
        batch_op.create_index(batch_op.f("ix_users_status"), ["status"], unique=False)
        batch_op.create_index(batch_op.f("ix_users_created_at"), ["created_at"], unique=False)

    # --- donation_requests ---
    op.create_table(
        "donation_requests",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("requester_name", sa.String(length=160), nullable=True),
        sa.Column("requester_email", sa.String(length=255), nullable=False),
        sa.Column("recipient_name", sa.String(length=160), nullable=True),
        sa.Column("recipient_district", sa.String(length=120), nullable=True),
        sa.Column("recipient_upazila", sa.String(length=120), nullable=True),
        sa.Column("hospital_name", sa.String(length=255), nullable=True),
        sa.Column("full_address", sa.String(length=500), nullable=True),
        sa.Column("blood_group", sa.String(length=8), nullable=False),
        sa.Column("donation_date", sa.String(length=40), nullable=True),
        sa.Column("donation_time", sa.String(length=40), nullable=True),
        sa.Column("request_message", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("donor_name", sa.String(length=160), nullable=True),
        sa.Column("donor_email", sa.String(length=255), nullable=True),
        *_timestamps(),
    )
    with op.batch_alter_table("donation_requests") as batch_op:
        batch_op.create_index(batch_op.f("ix_donation_requests_requester_email"), ["requester_email"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_requests_recipient_district"), ["recipient_district"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_requests_recipient_upazila"), ["recipient_upazila"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_requests_blood_group"), ["blood_group"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_requests_status"), ["status"], unique=False)
        batch_op.create_index(batch_op.f("ix_donation_requests_created_at"), ["created_at"], unique=False)
        batch_op.create_index("ix_donation_requests_status_created", ["status", "created_at"], unique=False)
        batch_op.create_index("ix_donation_requests_location", ["recipient_district", "recipient_upazila"], unique=False)

    # --- fundings ---
    op.create_table(
        "fundings",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("donor_name", sa.String(length=160), nullable=True),
        sa.Column("donor_email", sa.String(length=255), nullable=True),
        sa.Column("amount", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("transaction_id", sa.String(length=255), nullable=False),
        sa.Column("payment_status", sa.String(length=40), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("amount >= 0", name="ck_fundings_amount_nonneg"),
    )
    with op.batch_alter_table("fundings") as batch_op:
        # UNIQUE: one funding row per provider payment
        batch_op.create_index(batch_op.f("ix_fundings_transaction_id"), ["transaction_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_fundings_donor_email"), ["donor_email"], unique=False)
        batch_op.create_index(batch_op.f("ix_fundings_created_at"), ["created_at"], unique=False)

    # --- provider_events ---
    op.create_table(
        "provider_events",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("event_id", sa.String(length=120), nullable=False),
        sa.Column("type", sa.String(length=120), nullable=False),
        sa.Column("livemode", sa.Boolean(), nullable=False),
        sa.Column("object_id", sa.String(length=120), nullable=True),
        *_timestamps(),
    )
    with op.batch_alter_table("provider_events") as batch_op:
        batch_op.create_index(batch_op.f("ix_provider_events_event_id"), ["event_id"], unique=True)
        batch_op.create_index(batch_op.f("ix_provider_events_type"), ["type"], unique=False)
        batch_op.create_index(batch_op.f("ix_provider_events_object_id"), ["object_id"], unique=False)
        batch_op.create_index(batch_op.f("ix_provider_events_created_at"), ["created_at"], unique=False)
        batch_op.create_index("ix_provider_events_type_created", ["type", "created_at"], unique=False)


def downgrade():
    op.drop_table("provider_events")
    op.drop_table("fundings")
    op.drop_table("donation_requests")
    op.drop_table("users")

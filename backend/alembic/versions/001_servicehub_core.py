# backend/alembic/versions/001_servicehub_core.py
"""Core schema - businesses, bookings, payments, commission and notifications

Revision ID: 001_servicehub_core
Revises:
Create Date: 2026-10-19 00:00:00.000000

Businesses carry the provider tier state (provider_tier, performance_metrics,
tier_assigned_at). All three are NULL until the provider is first evaluated;
the tier migration backfills them.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001_servicehub_core"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create core tables."""
    print("Creating ServiceHub core tables...")

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("owner_id", sa.String(26), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("contact_email", sa.String(255), nullable=True),
        sa.Column("rating", sa.Numeric(3, 2), nullable=False, server_default="0"),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default="PENDING"),
        # Tier state
        sa.Column("provider_tier", sa.String(20), nullable=True),
        sa.Column("performance_metrics", sa.JSON(), nullable=True),
        sa.Column("tier_assigned_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_businesses_id", "businesses", ["id"])
    op.create_index("ix_businesses_owner_id", "businesses", ["owner_id"])
    op.create_index("ix_businesses_category", "businesses", ["category"])
    op.create_index("ix_businesses_provider_tier", "businesses", ["provider_tier"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("customer_email", sa.String(255), nullable=True),
        sa.Column("business_id", sa.String(26), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("booking_time", sa.Time(), nullable=False),
        sa.Column("service_name", sa.String(255), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_by", sa.String(26), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'IN_PROGRESS', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
    )
    op.create_index("ix_bookings_id", "bookings", ["id"])
    op.create_index("ix_bookings_customer_id", "bookings", ["customer_id"])
    op.create_index("ix_bookings_business_id", "bookings", ["business_id"])
    op.create_index("ix_bookings_booking_date", "bookings", ["booking_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "booking_reschedules",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("original_date", sa.Date(), nullable=False),
        sa.Column("original_time", sa.Time(), nullable=False),
        sa.Column("new_date", sa.Date(), nullable=False),
        sa.Column("new_time", sa.Time(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("changed_by", sa.String(26), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_booking_reschedules_booking_id", "booking_reschedules", ["booking_id"])

    op.create_table(
        "booking_provider_notes",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("added_by", sa.String(26), nullable=False),
        sa.Column("added_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_booking_provider_notes_booking_id", "booking_provider_notes", ["booking_id"]
    )

    op.create_table(
        "booking_status_log",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("previous_status", sa.String(20), nullable=False),
        sa.Column("new_status", sa.String(20), nullable=False),
        sa.Column("changed_by", sa.String(26), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_booking_status_log_booking_id", "booking_status_log", ["booking_id"])

    op.create_table(
        "payment_transactions",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("booking_id", sa.String(26), nullable=False),
        sa.Column("business_id", sa.String(26), nullable=False),
        sa.Column("customer_id", sa.String(26), nullable=False),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("platform_commission", sa.Numeric(12, 2), nullable=False),
        sa.Column("provider_payout", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False, server_default="GHS"),
        # Snapshot of the rate source at creation time
        sa.Column("provider_tier", sa.String(20), nullable=False),
        sa.Column("commission_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("service_category", sa.String(100), nullable=True),
        sa.Column("payment_method", sa.String(20), nullable=False),
        sa.Column("payment_status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("commission_owed", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "commission_status", sa.String(20), nullable=False, server_default="COLLECTED"
        ),
        sa.Column("commission_collected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["booking_id"], ["bookings.id"]),
        sa.ForeignKeyConstraint(["business_id"], ["businesses.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("booking_id"),
        sa.CheckConstraint("total_amount > 0", name="ck_payment_amount_positive"),
        sa.CheckConstraint(
            "payment_status IN ('PENDING', 'COMPLETED', 'FAILED', 'REFUNDED')",
            name="ck_payment_status",
        ),
    )
    op.create_index("ix_payment_transactions_id", "payment_transactions", ["id"])
    op.create_index(
        "ix_payment_transactions_business_id", "payment_transactions", ["business_id"]
    )
    op.create_index(
        "ix_payment_transactions_payment_status", "payment_transactions", ["payment_status"]
    )
    op.create_index(
        "ix_payment_transactions_commission_status",
        "payment_transactions",
        ["commission_status"],
    )
    op.create_index("ix_payment_transactions_created_at", "payment_transactions", ["created_at"])

    op.create_table(
        "commission_config",
        sa.Column("id", sa.String(50), nullable=False),
        sa.Column("rates", sa.JSON(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("updated_by", sa.String(26), nullable=True),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "commission_rate_history",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("tier", sa.String(20), nullable=False),
        sa.Column("old_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("new_rate", sa.Numeric(5, 2), nullable=False),
        sa.Column("changed_by", sa.String(26), nullable=False),
        sa.Column("changed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_commission_rate_history_tier", "commission_rate_history", ["tier"])
    op.create_index(
        "ix_commission_rate_history_changed_at", "commission_rate_history", ["changed_at"]
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.String(26), nullable=False),
        sa.Column("user_id", sa.String(26), nullable=False),
        sa.Column("type", sa.String(100), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("booking_id", sa.String(26), nullable=True),
        sa.Column("data", sa.JSON(), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_notifications_booking_id", "notifications", ["booking_id"])
    op.create_index("ix_notifications_user_read_at", "notifications", ["user_id", "read_at"])
    op.create_index(
        "ix_notifications_user_created_at",
        "notifications",
        ["user_id", sa.text("created_at DESC")],
    )

    print("ServiceHub core tables created successfully!")


def downgrade() -> None:
    """Drop core tables."""
    print("Dropping ServiceHub core tables...")

    op.drop_table("notifications")
    op.drop_table("commission_rate_history")
    op.drop_table("commission_config")
    op.drop_table("payment_transactions")
    op.drop_table("booking_status_log")
    op.drop_table("booking_provider_notes")
    op.drop_table("booking_reschedules")
    op.drop_table("bookings")
    op.drop_table("businesses")

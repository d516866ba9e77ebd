"""initial venue booking schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16

"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

CONFIRMED_EVENT = "booking_type = 'EVENT' AND status = 'CONFIRMED'"
ACTIVE_SHOWING = "booking_type = 'SHOWING' AND status <> 'CANCELLED'"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=False, server_default=""),
        sa.Column("role", sa.String(length=30), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_type", sa.String(length=12), nullable=False),
        sa.Column("event_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.DateTime(), nullable=False),
        sa.Column("end_time", sa.DateTime(), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="PENDING"),
        sa.Column("day_type", sa.String(length=10), nullable=True),
        sa.Column("hourly_rate_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("event_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("base_amount_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("extra_setup_hours", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("extra_setup_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deposit_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("amount_paid_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("payment_method", sa.String(length=30), nullable=True),
        sa.Column("stripe_checkout_session_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_payment_status", sa.String(length=40), nullable=True),
        sa.Column("contact_name", sa.String(length=200), nullable=False),
        sa.Column("contact_email", sa.String(length=320), nullable=False),
        sa.Column("contact_phone", sa.String(length=40), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("event_type", sa.String(length=120), nullable=True),
        sa.Column("guest_count", sa.Integer(), nullable=True),
        sa.Column("rect_tables_requested", sa.Integer(), nullable=True),
        sa.Column("round_tables_requested", sa.Integer(), nullable=True),
        sa.Column("chairs_requested", sa.Integer(), nullable=True),
        sa.Column("setup_notes", sa.Text(), nullable=True),
        sa.Column("contract_accepted", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("contract_accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contract_signer_name", sa.String(length=200), nullable=True),
        sa.Column("contract_version", sa.String(length=20), nullable=True),
        sa.Column("contract_text", sa.Text(), nullable=True),
        sa.Column("management_token", sa.String(length=64), nullable=True),
        sa.Column("management_token_expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("management_token", name="uq_bookings_management_token"),
    )
    op.create_index("ix_bookings_booking_type", "bookings", ["booking_type"])
    op.create_index("ix_bookings_event_date", "bookings", ["event_date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_bookings_contact_email", "bookings", ["contact_email"])
    op.create_index("ix_bookings_stripe_checkout_session_id", "bookings", ["stripe_checkout_session_id"])
    op.create_index(
        "uq_bookings_confirmed_event_per_day", "bookings", ["event_date"], unique=True,
        postgresql_where=sa.text(CONFIRMED_EVENT), sqlite_where=sa.text(CONFIRMED_EVENT),
    )
    op.create_index(
        "uq_bookings_active_showing_slot", "bookings", ["start_time"], unique=True,
        postgresql_where=sa.text(ACTIVE_SHOWING), sqlite_where=sa.text(ACTIVE_SHOWING),
    )

    op.create_table(
        "add_ons",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_add_ons_active", "add_ons", ["active"])

    op.create_table(
        "booking_add_ons",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("booking_id", sa.String(length=36), sa.ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False),
        sa.Column("add_on_id", sa.String(length=36), sa.ForeignKey("add_ons.id"), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("price_at_booking", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_booking_add_ons_booking_id", "booking_add_ons", ["booking_id"])
    op.create_index("ix_booking_add_ons_add_on_id", "booking_add_ons", ["add_on_id"])

    op.create_table(
        "blocked_dates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("reason", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_blocked_dates_date", "blocked_dates", ["date"], unique=True)

    op.create_table(
        "showing_availability",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("day_of_week", "start_time", "end_time", name="uq_showing_window"),
    )
    op.create_index("ix_showing_availability_day_of_week", "showing_availability", ["day_of_week"])

    op.create_table(
        "showing_config",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("key", sa.String(length=40), nullable=False),
        sa.Column("default_duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("max_slots_per_window", sa.Integer(), nullable=False, server_default="999"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("key", name="uq_showing_config_key"),
    )

    op.create_table(
        "email_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("to_email", sa.String(length=320), nullable=False),
        sa.Column("subject", sa.String(length=200), nullable=False),
        sa.Column("body", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="queued"),
        sa.Column("kind", sa.String(length=40), nullable=False, server_default=""),
        sa.Column("booking_id", sa.String(length=36), nullable=False, server_default=""),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_email_logs_to_email", "email_logs", ["to_email"])
    op.create_index("ix_email_logs_booking_id", "email_logs", ["booking_id"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("actor_user_id", sa.String(length=320), nullable=False),
        sa.Column("action", sa.String(length=80), nullable=False),
        sa.Column("entity_type", sa.String(length=40), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("details_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_audit_logs_actor_user_id", "audit_logs", ["actor_user_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_entity_type", "audit_logs", ["entity_type"])
    op.create_index("ix_audit_logs_entity_id", "audit_logs", ["entity_id"])


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("email_logs")
    op.drop_table("showing_config")
    op.drop_table("showing_availability")
    op.drop_table("blocked_dates")
    op.drop_table("booking_add_ons")
    op.drop_table("add_ons")
    op.drop_table("bookings")
    op.drop_table("users")

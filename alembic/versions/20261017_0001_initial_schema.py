"""Initial schema

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261017_0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _enum(name: str, *members: str) -> sa.Enum:
    return sa.Enum(*members, name=name, native_enum=False)


CONFIRMATION = ("PENDING", "CONFIRMED", "CANCELED")
PAYMENT_METHODS = ("ONE_OFF", "PER_SESSION", "WEEKLY", "MONTHLY")
FREQUENCIES = ("WEEKLY", "MONTHLY")


def _id_col() -> sa.Column:
    return sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False)


def _created_col() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def _updated_col() -> sa.Column:
    return sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False)


def _billing_cols(prefix: str) -> list[sa.Column]:
    return [
        sa.Column("payment_method", _enum(f"{prefix}_payment_method_enum", *PAYMENT_METHODS), nullable=True),
        sa.Column("billing_frequency", _enum(f"{prefix}_billing_frequency_enum", *FREQUENCIES), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("next_billing_date", sa.Date(), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "roles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", _enum("role_enum", "MEMBER", "COACH", "ADMIN"), nullable=False),
        sa.UniqueConstraint("name", name="uq_roles_name"),
    )

    op.create_table(
        "users",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=128), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=True),
        sa.Column("date_of_birth", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("role_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.ForeignKeyConstraint(["role_id"], ["roles.id"], name="fk_users_role_id_roles", ondelete="RESTRICT"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=False)

    op.create_table(
        "refresh_tokens",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("token_id", sa.String(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_refresh_tokens_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("token_id", name="uq_refresh_tokens_token_id"),
    )
    op.create_index("ix_refresh_tokens_token_id", "refresh_tokens", ["token_id"], unique=False)

    op.create_table(
        "coach_profiles",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("display_name", sa.String(length=128), nullable=False),
        sa.Column("level", sa.String(length=64), nullable=True),
        sa.Column("bio", sa.Text(), nullable=False),
        sa.Column("image_url", sa.String(length=512), nullable=True),
        sa.Column("mobile_number", sa.String(length=32), nullable=True),
        sa.Column("whatsapp_auto_reply_enabled", sa.Boolean(), nullable=False),
        sa.Column("whatsapp_auto_reply_message", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_coach_profiles_user_id_users", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", name="uq_coach_profiles_user_id"),
    )
    op.create_index("ix_coach_profiles_mobile_number", "coach_profiles", ["mobile_number"], unique=False)

    op.create_table(
        "gym_classes",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column(
            "weekday",
            _enum("weekday_enum", "MONDAY", "TUESDAY", "WEDNESDAY", "THURSDAY", "FRIDAY", "SATURDAY", "SUNDAY"),
            nullable=False,
        ),
        sa.Column("start_time", sa.Time(), nullable=False),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(
            ["coach_id"],
            ["coach_profiles.id"],
            name="fk_gym_classes_coach_id_coach_profiles",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_gym_classes_weekday", "gym_classes", ["weekday"], unique=False)
    op.create_index("ix_gym_classes_coach_id", "gym_classes", ["coach_id"], unique=False)

    op.create_table(
        "coach_slots",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("slot_type", _enum("slot_type_enum", "PRIVATE", "GROUP"), nullable=False),
        sa.Column("title", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ["coach_id"],
            ["coach_profiles.id"],
            name="fk_coach_slots_coach_id_coach_profiles",
            ondelete="CASCADE",
        ),
    )
    op.create_index("ix_coach_slots_coach_id", "coach_slots", ["coach_id"], unique=False)
    op.create_index("ix_coach_slots_start_at", "coach_slots", ["start_at"], unique=False)

    op.create_table(
        "coach_appointments",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("slot_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("participant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("participant_name", sa.String(length=128), nullable=True),
        sa.Column("status", _enum("appointment_status_enum", "CONFIRMED", "CANCELED"), nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["slot_id"],
            ["coach_slots.id"],
            name="fk_coach_appointments_slot_id_coach_slots",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["member_id"],
            ["users.id"],
            name="fk_coach_appointments_member_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_coach_appointments_slot_id", "coach_appointments", ["slot_id"], unique=False)
    op.create_index("ix_coach_appointments_member_id", "coach_appointments", ["member_id"], unique=False)
    op.create_index(
        "ix_coach_appointments_stripe_session_id",
        "coach_appointments",
        ["stripe_session_id"],
        unique=False,
    )
    op.create_index(
        "uq_coach_appointments_active_slot",
        "coach_appointments",
        ["slot_id"],
        unique=True,
        postgresql_where=sa.text("status <> 'CANCELED'"),
    )

    op.create_table(
        "bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("participant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("participant_name", sa.String(length=128), nullable=True),
        sa.Column("class_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("paid", sa.Boolean(), nullable=False),
        sa.Column("attended", sa.Boolean(), nullable=False),
        sa.Column("confirmation_status", _enum("booking_confirmation_status_enum", *CONFIRMATION), nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("session_start", sa.DateTime(timezone=True), nullable=True),
        *_billing_cols("booking"),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("canceled_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["member_id"], ["users.id"], name="fk_bookings_member_id_users", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["class_id"],
            ["gym_classes.id"],
            name="fk_bookings_class_id_gym_classes",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_bookings_member_id", "bookings", ["member_id"], unique=False)
    op.create_index("ix_bookings_class_id", "bookings", ["class_id"], unique=False)
    op.create_index("ix_bookings_confirmation_status", "bookings", ["confirmation_status"], unique=False)
    op.create_index("ix_bookings_stripe_session_id", "bookings", ["stripe_session_id"], unique=False)

    op.create_table(
        "transactions",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("coach_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("booking_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("slot_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("guest_booking_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column(
            "source",
            _enum("transaction_source_enum", "CLASS", "PRIVATE_SESSION", "GROUP_SESSION"),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", _enum("transaction_status_enum", "PENDING", "PAID", "REFUNDED"), nullable=False),
        sa.Column(
            "confirmation_status",
            _enum("transaction_confirmation_status_enum", *CONFIRMATION),
            nullable=False,
        ),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=False),
        sa.Column(
            "payment_method",
            _enum("transaction_payment_method_enum", *PAYMENT_METHODS),
            nullable=False,
        ),
        sa.Column(
            "billing_frequency",
            _enum("transaction_billing_frequency_enum", *FREQUENCIES),
            nullable=True,
        ),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("next_billing_date", sa.Date(), nullable=True),
        sa.Column("settled_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("refunded_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("stripe_session_id", name="uq_transactions_stripe_session_id"),
    )
    op.create_index("ix_transactions_member_id", "transactions", ["member_id"], unique=False)
    op.create_index("ix_transactions_coach_id", "transactions", ["coach_id"], unique=False)
    op.create_index("ix_transactions_status", "transactions", ["status"], unique=False)

    op.create_table(
        "guest_bookings",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("service_type", _enum("guest_service_type_enum", "CLASS", "PRIVATE"), nullable=False),
        sa.Column("reference_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("session_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("participant_name", sa.String(length=128), nullable=False),
        sa.Column("participant_dob", sa.Date(), nullable=True),
        sa.Column("contact_name", sa.String(length=128), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=False),
        sa.Column("contact_phone", sa.String(length=32), nullable=True),
        sa.Column("status", _enum("guest_booking_status_enum", *CONFIRMATION), nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=False),
        sa.Column("payment_method", _enum("guest_payment_method_enum", *PAYMENT_METHODS), nullable=False),
        sa.Column("billing_frequency", _enum("guest_billing_frequency_enum", *FREQUENCIES), nullable=True),
        sa.Column("stripe_customer_id", sa.String(length=255), nullable=True),
        sa.Column("stripe_subscription_id", sa.String(length=255), nullable=True),
        sa.Column("next_billing_date", sa.Date(), nullable=True),
        sa.UniqueConstraint("stripe_session_id", name="uq_guest_bookings_stripe_session_id"),
    )
    op.create_index("ix_guest_bookings_contact_email", "guest_bookings", ["contact_email"], unique=False)

    op.create_table(
        "checkout_drafts",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("flow", _enum("checkout_flow_enum", "CLASS", "COACH_SLOT", "GUEST"), nullable=False),
        sa.Column("billing_mode", _enum("checkout_billing_mode_enum", *PAYMENT_METHODS), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", _enum("checkout_draft_status_enum", "OPEN", "COMPLETED", "EXPIRED"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("stripe_session_id", sa.String(length=255), nullable=True),
        sa.Column("member_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("stripe_session_id", name="uq_checkout_drafts_stripe_session_id"),
    )
    op.create_index("ix_checkout_drafts_status", "checkout_drafts", ["status"], unique=False)
    op.create_index("ix_checkout_drafts_member_id", "checkout_drafts", ["member_id"], unique=False)

    op.create_table(
        "audit_logs",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("actor_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column("entity_type", sa.String(length=128), nullable=False),
        sa.Column("entity_id", sa.String(length=128), nullable=True),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"], name="fk_audit_logs_actor_id_users", ondelete="SET NULL"),
    )
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"], unique=False)
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"], unique=False)

    op.create_table(
        "outbox_events",
        _id_col(),
        _created_col(),
        _updated_col(),
        sa.Column("aggregate_type", sa.String(length=128), nullable=False),
        sa.Column("aggregate_id", sa.String(length=255), nullable=False),
        sa.Column("event_type", sa.String(length=128), nullable=False),
        sa.Column("payload", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column("status", _enum("outbox_status_enum", "PENDING", "PROCESSED", "FAILED"), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("retries", sa.Integer(), nullable=False),
        sa.Column("error_message", sa.Text(), nullable=True),
    )
    op.create_index("ix_outbox_events_aggregate_type", "outbox_events", ["aggregate_type"], unique=False)
    op.create_index("ix_outbox_events_aggregate_id", "outbox_events", ["aggregate_id"], unique=False)
    op.create_index("ix_outbox_events_event_type", "outbox_events", ["event_type"], unique=False)
    op.create_index("ix_outbox_events_status", "outbox_events", ["status"], unique=False)


def downgrade() -> None:
    op.drop_table("outbox_events")
    op.drop_table("audit_logs")
    op.drop_table("checkout_drafts")
    op.drop_table("guest_bookings")
    op.drop_table("transactions")
    op.drop_table("bookings")
    op.drop_index("uq_coach_appointments_active_slot", table_name="coach_appointments")
    op.drop_table("coach_appointments")
    op.drop_table("coach_slots")
    op.drop_table("gym_classes")
    op.drop_table("coach_profiles")
    op.drop_table("refresh_tokens")
    op.drop_table("users")
    op.drop_table("roles")

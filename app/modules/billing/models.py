"""Billing ORM models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, DateTime, Numeric, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import (
    BillingFrequencyEnum,
    ConfirmationStatusEnum,
    GuestServiceTypeEnum,
    PaymentMethodEnum,
    TransactionSourceEnum,
    TransactionStatusEnum,
)


class Transaction(BaseModelMixin, Base):
    """Ledger entry for one completed checkout session.

    Linkage columns are plain ids so a ledger row can be written even when
    the matching booking row could not be.
    """

    __tablename__ = "transactions"

    member_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    coach_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    booking_id: Mapped[UUID | None] = mapped_column(nullable=True)
    slot_id: Mapped[UUID | None] = mapped_column(nullable=True)
    guest_booking_id: Mapped[UUID | None] = mapped_column(nullable=True)

    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="GBP", nullable=False)
    source: Mapped[TransactionSourceEnum] = mapped_column(
        SAEnum(TransactionSourceEnum, name="transaction_source_enum", native_enum=False),
        nullable=False,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[TransactionStatusEnum] = mapped_column(
        SAEnum(TransactionStatusEnum, name="transaction_status_enum", native_enum=False),
        default=TransactionStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    confirmation_status: Mapped[ConfirmationStatusEnum] = mapped_column(
        SAEnum(ConfirmationStatusEnum, name="transaction_confirmation_status_enum", native_enum=False),
        default=ConfirmationStatusEnum.PENDING,
        nullable=False,
    )
    stripe_session_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    payment_method: Mapped[PaymentMethodEnum] = mapped_column(
        SAEnum(PaymentMethodEnum, name="transaction_payment_method_enum", native_enum=False),
        default=PaymentMethodEnum.ONE_OFF,
        nullable=False,
    )
    billing_frequency: Mapped[BillingFrequencyEnum | None] = mapped_column(
        SAEnum(BillingFrequencyEnum, name="transaction_billing_frequency_enum", native_enum=False),
        nullable=True,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    next_billing_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    settled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class GuestBooking(BaseModelMixin, Base):
    """Purchase made by a visitor without a member account."""

    __tablename__ = "guest_bookings"

    service_type: Mapped[GuestServiceTypeEnum] = mapped_column(
        SAEnum(GuestServiceTypeEnum, name="guest_service_type_enum", native_enum=False),
        nullable=False,
    )
    reference_id: Mapped[UUID | None] = mapped_column(nullable=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    session_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    participant_name: Mapped[str] = mapped_column(String(128), nullable=False)
    participant_dob: Mapped[date | None] = mapped_column(Date, nullable=True)
    contact_name: Mapped[str] = mapped_column(String(128), nullable=False)
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    contact_phone: Mapped[str | None] = mapped_column(String(32), nullable=True)

    status: Mapped[ConfirmationStatusEnum] = mapped_column(
        SAEnum(ConfirmationStatusEnum, name="guest_booking_status_enum", native_enum=False),
        default=ConfirmationStatusEnum.PENDING,
        nullable=False,
    )
    stripe_session_id: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    payment_method: Mapped[PaymentMethodEnum] = mapped_column(
        SAEnum(PaymentMethodEnum, name="guest_payment_method_enum", native_enum=False),
        default=PaymentMethodEnum.ONE_OFF,
        nullable=False,
    )
    billing_frequency: Mapped[BillingFrequencyEnum | None] = mapped_column(
        SAEnum(BillingFrequencyEnum, name="guest_billing_frequency_enum", native_enum=False),
        nullable=True,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    next_billing_date: Mapped[date | None] = mapped_column(Date, nullable=True)

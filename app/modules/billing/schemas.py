"""Billing schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import (
    BillingFrequencyEnum,
    ConfirmationStatusEnum,
    GuestServiceTypeEnum,
    PaymentMethodEnum,
    TransactionSourceEnum,
    TransactionStatusEnum,
)


class TransactionConfirmationUpdate(BaseModel):
    """Staff confirmation decision for a ledger entry."""

    confirmation_status: ConfirmationStatusEnum


class TransactionRead(BaseModel):
    """Ledger entry response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    member_id: UUID | None
    coach_id: UUID | None
    booking_id: UUID | None
    slot_id: UUID | None
    guest_booking_id: UUID | None
    amount: Decimal
    currency: str
    source: TransactionSourceEnum
    description: str | None
    status: TransactionStatusEnum
    confirmation_status: ConfirmationStatusEnum
    stripe_session_id: str
    payment_method: PaymentMethodEnum
    billing_frequency: BillingFrequencyEnum | None
    stripe_customer_id: str | None
    stripe_subscription_id: str | None
    next_billing_date: date | None
    settled_at: datetime | None
    refunded_at: datetime | None
    created_at: datetime
    updated_at: datetime


class GuestBookingRead(BaseModel):
    """Guest booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    service_type: GuestServiceTypeEnum
    reference_id: UUID | None
    title: str
    session_date: datetime | None
    participant_name: str
    participant_dob: date | None
    contact_name: str
    contact_email: str
    contact_phone: str | None
    status: ConfirmationStatusEnum
    stripe_session_id: str
    payment_method: PaymentMethodEnum
    billing_frequency: BillingFrequencyEnum | None
    stripe_subscription_id: str | None
    next_billing_date: date | None
    created_at: datetime

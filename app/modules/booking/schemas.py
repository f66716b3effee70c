"""Booking schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.core.enums import BillingFrequencyEnum, ConfirmationStatusEnum, PaymentMethodEnum


class BookingRead(BaseModel):
    """Booking response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    member_id: UUID | None
    participant_id: UUID | None
    participant_name: str | None
    class_id: UUID | None
    paid: bool
    attended: bool
    confirmation_status: ConfirmationStatusEnum
    stripe_session_id: str | None
    session_start: datetime | None
    payment_method: PaymentMethodEnum | None
    billing_frequency: BillingFrequencyEnum | None
    stripe_customer_id: str | None
    stripe_subscription_id: str | None
    next_billing_date: date | None
    confirmed_at: datetime | None
    canceled_at: datetime | None
    created_at: datetime
    updated_at: datetime

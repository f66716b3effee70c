"""Checkout schemas."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import CheckoutDraftStatusEnum, CheckoutFlowEnum, PaymentMethodEnum, SlotTypeEnum


class GuestBookingInput(BaseModel):
    """Participant and contact details of a visitor without an account."""

    participant_name: str | None = Field(default=None, max_length=128)
    participant_dob: date | None = None
    contact_name: str | None = Field(default=None, max_length=128)
    contact_email: str | None = Field(default=None, max_length=255)
    contact_phone: str | None = Field(default=None, max_length=32)


class CheckoutSessionCreate(BaseModel):
    """Start a hosted checkout for a class, a coach slot or a guest purchase.

    Required-field rules are checked by the service so they answer 400.
    """

    price: Decimal | None = Field(default=None, max_digits=10, decimal_places=2)
    billing_mode: PaymentMethodEnum = PaymentMethodEnum.ONE_OFF
    class_id: UUID | None = None
    class_name: str | None = Field(default=None, max_length=255)
    slot_id: UUID | None = None
    slot_title: str | None = Field(default=None, max_length=255)
    slot_type: SlotTypeEnum | None = None
    coach_id: UUID | None = None
    member_id: UUID | None = None
    participant_id: UUID | None = None
    participant_name: str | None = Field(default=None, max_length=128)
    booking_id: UUID | None = None
    session_start: datetime | None = None
    guest_booking: GuestBookingInput | None = None
    success_path: str | None = Field(default=None, max_length=255)
    draft_id: UUID | None = None


class CheckoutSessionRead(BaseModel):
    id: str
    draft_id: UUID
    expires_at: datetime


class FinalizeRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=255)


class FinalizeResponse(BaseModel):
    """Provider view of the session plus whether it was reconciled now."""

    id: str
    status: str | None
    payment_status: str | None
    amount_total: int | None
    currency: str | None
    metadata: dict[str, Any]
    reconciled: bool


class RefundRequest(BaseModel):
    session_id: str = Field(min_length=1, max_length=255)


class RefundResponse(BaseModel):
    refund_id: str
    status: str | None
    amount: int | None
    currency: str | None
    transaction_id: UUID | None


class StripeConfigRead(BaseModel):
    publishable_key: str


class CheckoutDraftRead(BaseModel):
    """Checkout draft response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    flow: CheckoutFlowEnum
    billing_mode: PaymentMethodEnum
    status: CheckoutDraftStatusEnum
    expires_at: datetime
    stripe_session_id: str | None
    member_id: UUID | None
    completed_at: datetime | None
    created_at: datetime


class WebhookAck(BaseModel):
    received: bool = True

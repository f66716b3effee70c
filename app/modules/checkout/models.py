"""Checkout ORM models."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import CheckoutDraftStatusEnum, CheckoutFlowEnum, PaymentMethodEnum
from app.modules.audit.models import JSONPayload


class CheckoutDraft(BaseModelMixin, Base):
    """Server-side record of a checkout the client has started.

    The draft id doubles as the provider idempotency key.
    """

    __tablename__ = "checkout_drafts"

    flow: Mapped[CheckoutFlowEnum] = mapped_column(
        SAEnum(CheckoutFlowEnum, name="checkout_flow_enum", native_enum=False),
        nullable=False,
    )
    billing_mode: Mapped[PaymentMethodEnum] = mapped_column(
        SAEnum(PaymentMethodEnum, name="checkout_billing_mode_enum", native_enum=False),
        nullable=False,
    )
    payload: Mapped[dict] = mapped_column(JSONPayload, default=dict, nullable=False)
    status: Mapped[CheckoutDraftStatusEnum] = mapped_column(
        SAEnum(CheckoutDraftStatusEnum, name="checkout_draft_status_enum", native_enum=False),
        default=CheckoutDraftStatusEnum.OPEN,
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), unique=True, nullable=True)
    member_id: Mapped[UUID | None] = mapped_column(nullable=True, index=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

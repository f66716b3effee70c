"""Booking ORM models."""

from __future__ import annotations

from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin
from app.core.enums import BillingFrequencyEnum, ConfirmationStatusEnum, PaymentMethodEnum

if TYPE_CHECKING:
    from app.modules.classes.models import GymClass


class Booking(BaseModelMixin, Base):
    """Member (or dependent) place on a class occurrence."""

    __tablename__ = "bookings"

    member_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    participant_id: Mapped[UUID | None] = mapped_column(nullable=True)
    participant_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    class_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("gym_classes.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    attended: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    confirmation_status: Mapped[ConfirmationStatusEnum] = mapped_column(
        SAEnum(ConfirmationStatusEnum, name="booking_confirmation_status_enum", native_enum=False),
        default=ConfirmationStatusEnum.PENDING,
        nullable=False,
        index=True,
    )
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    session_start: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    payment_method: Mapped[PaymentMethodEnum | None] = mapped_column(
        SAEnum(PaymentMethodEnum, name="booking_payment_method_enum", native_enum=False),
        nullable=True,
    )
    billing_frequency: Mapped[BillingFrequencyEnum | None] = mapped_column(
        SAEnum(BillingFrequencyEnum, name="booking_billing_frequency_enum", native_enum=False),
        nullable=True,
    )
    stripe_customer_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    stripe_subscription_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    next_billing_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    confirmed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    gym_class: Mapped["GymClass | None"] = relationship()

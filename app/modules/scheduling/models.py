"""Scheduling ORM models."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, ForeignKey, Index, Integer, Numeric, String, Text, text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin
from app.core.enums import AppointmentStatusEnum, SlotTypeEnum


class CoachSlot(BaseModelMixin, Base):
    """Bookable time window published by a coach."""

    __tablename__ = "coach_slots"

    coach_id: Mapped[UUID] = mapped_column(
        ForeignKey("coach_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    slot_type: Mapped[SlotTypeEnum] = mapped_column(
        SAEnum(SlotTypeEnum, name="slot_type_enum", native_enum=False),
        default=SlotTypeEnum.PRIVATE,
        nullable=False,
    )
    title: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    end_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)

    appointments: Mapped[list["CoachAppointment"]] = relationship(back_populates="slot")


class CoachAppointment(BaseModelMixin, Base):
    """Occupancy of one slot by one member-participant pair."""

    __tablename__ = "coach_appointments"
    __table_args__ = (
        Index(
            "uq_coach_appointments_active_slot",
            "slot_id",
            unique=True,
            postgresql_where=text("status <> 'CANCELED'"),
            sqlite_where=text("status <> 'CANCELED'"),
        ),
    )

    slot_id: Mapped[UUID] = mapped_column(
        ForeignKey("coach_slots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    member_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    participant_id: Mapped[UUID | None] = mapped_column(nullable=True)
    participant_name: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[AppointmentStatusEnum] = mapped_column(
        SAEnum(AppointmentStatusEnum, name="appointment_status_enum", native_enum=False),
        default=AppointmentStatusEnum.CONFIRMED,
        nullable=False,
    )
    stripe_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    canceled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    slot: Mapped[CoachSlot] = relationship(back_populates="appointments")

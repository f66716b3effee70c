"""Gym class ORM models."""

from __future__ import annotations

from datetime import time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, Numeric, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base, BaseModelMixin
from app.core.enums import WeekdayEnum


class GymClass(BaseModelMixin, Base):
    """Recurring weekly class on the gym timetable."""

    __tablename__ = "gym_classes"

    name: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    weekday: Mapped[WeekdayEnum] = mapped_column(
        SAEnum(WeekdayEnum, name="weekday_enum", native_enum=False),
        nullable=False,
        index=True,
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    coach_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("coach_profiles.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    min_age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_age: Mapped[int | None] = mapped_column(Integer, nullable=True)

"""Scheduling schemas."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import AppointmentStatusEnum, SlotTypeEnum


class SlotCreate(BaseModel):
    """Create coach slot request."""

    coach_id: UUID
    slot_type: SlotTypeEnum = SlotTypeEnum.PRIVATE
    title: str = Field(min_length=2, max_length=128)
    description: str = Field(default="", max_length=5000)
    start_at: datetime
    end_at: datetime
    capacity: int = Field(default=1, ge=1, le=50)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    location: str | None = Field(default=None, max_length=255)


class SlotRead(BaseModel):
    """Coach slot response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    coach_id: UUID
    slot_type: SlotTypeEnum
    title: str
    description: str
    start_at: datetime
    end_at: datetime
    capacity: int
    price: Decimal
    location: str | None
    created_at: datetime
    updated_at: datetime


class AppointmentRead(BaseModel):
    """Coach appointment response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    slot_id: UUID
    member_id: UUID | None
    participant_id: UUID | None
    participant_name: str | None
    status: AppointmentStatusEnum
    stripe_session_id: str | None
    canceled_at: datetime | None
    created_at: datetime
    updated_at: datetime

"""Gym class schemas."""

from __future__ import annotations

from datetime import datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.core.enums import WeekdayEnum


class GymClassCreate(BaseModel):
    """Create class request."""

    name: str = Field(min_length=2, max_length=128)
    description: str = Field(default="", max_length=5000)
    weekday: WeekdayEnum
    start_time: time
    coach_id: UUID | None = None
    capacity: int = Field(ge=1, le=200)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    min_age: int | None = Field(default=None, ge=0, le=120)
    max_age: int | None = Field(default=None, ge=0, le=120)

    @model_validator(mode="after")
    def validate_age_range(self) -> "GymClassCreate":
        if self.min_age is not None and self.max_age is not None and self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")
        return self


class GymClassUpdate(BaseModel):
    """Update class request."""

    name: str | None = Field(default=None, min_length=2, max_length=128)
    description: str | None = Field(default=None, max_length=5000)
    weekday: WeekdayEnum | None = None
    start_time: time | None = None
    coach_id: UUID | None = None
    capacity: int | None = Field(default=None, ge=1, le=200)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    min_age: int | None = Field(default=None, ge=0, le=120)
    max_age: int | None = Field(default=None, ge=0, le=120)


class GymClassRead(BaseModel):
    """Class response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str
    weekday: WeekdayEnum
    start_time: time
    coach_id: UUID | None
    capacity: int
    price: Decimal
    min_age: int | None
    max_age: int | None
    created_at: datetime
    updated_at: datetime

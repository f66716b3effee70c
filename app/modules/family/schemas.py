"""Family schemas."""

from __future__ import annotations

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class DependentCreate(BaseModel):
    """Add a dependent; ``member_id`` is honoured for admins only."""

    full_name: str = Field(min_length=2, max_length=128)
    date_of_birth: date
    member_id: UUID | None = None


class DependentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    member_id: UUID
    full_name: str
    date_of_birth: date
    created_at: datetime

"""Coaches schemas."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class CoachProfileCreate(BaseModel):
    """Create coach profile request."""

    user_id: UUID
    display_name: str = Field(min_length=2, max_length=128)
    level: str | None = Field(default=None, max_length=64)
    bio: str = Field(default="", max_length=5000)
    image_url: str | None = Field(default=None, max_length=512)
    mobile_number: str | None = Field(default=None, max_length=32)
    whatsapp_auto_reply_enabled: bool = True
    whatsapp_auto_reply_message: str | None = Field(default=None, max_length=2000)


class CoachProfileUpdate(BaseModel):
    """Update coach profile request."""

    display_name: str | None = Field(default=None, min_length=2, max_length=128)
    level: str | None = Field(default=None, max_length=64)
    bio: str | None = Field(default=None, max_length=5000)
    image_url: str | None = Field(default=None, max_length=512)
    mobile_number: str | None = Field(default=None, max_length=32)
    whatsapp_auto_reply_enabled: bool | None = None
    whatsapp_auto_reply_message: str | None = Field(default=None, max_length=2000)


class CoachProfileRead(BaseModel):
    """Coach profile response schema."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    display_name: str
    level: str | None
    bio: str
    image_url: str | None
    mobile_number: str | None
    whatsapp_auto_reply_enabled: bool
    whatsapp_auto_reply_message: str | None
    created_at: datetime
    updated_at: datetime

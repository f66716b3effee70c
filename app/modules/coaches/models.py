"""Coaches ORM models."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.database import Base, BaseModelMixin


class CoachProfile(BaseModelMixin, Base):
    """Coach profile linked to a user account."""

    __tablename__ = "coach_profiles"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String(128), nullable=False)
    level: Mapped[str | None] = mapped_column(String(64), nullable=True)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    mobile_number: Mapped[str | None] = mapped_column(String(32), nullable=True, index=True)
    whatsapp_auto_reply_enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    whatsapp_auto_reply_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    user = relationship("User", back_populates="coach_profile")

"""Coaches business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.modules.coaches.models import CoachProfile
from app.modules.coaches.repository import CoachesRepository
from app.modules.coaches.schemas import CoachProfileCreate, CoachProfileUpdate
from app.modules.identity.models import User
from app.modules.messaging.phone import normalize_phone_number
from app.shared.exceptions import (
    ConflictException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)


def _normalized_mobile(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    normalized = normalize_phone_number(raw)
    if normalized is None:
        raise ValidationException(f"Invalid mobile number: {raw}")
    return normalized


class CoachesService:
    """Coaches domain service."""

    def __init__(self, repository: CoachesRepository) -> None:
        self.repository = repository

    @staticmethod
    def _ensure_owner_or_admin(actor: User, user_id: UUID, action: str) -> None:
        if actor.role.name != RoleEnum.ADMIN and actor.id != user_id:
            raise UnauthorizedException(f"Only admin or owner can {action} coach profile")

    async def create_profile(self, payload: CoachProfileCreate, actor: User) -> CoachProfile:
        """Create coach profile."""
        self._ensure_owner_or_admin(actor, payload.user_id, "create")

        existing = await self.repository.get_profile_by_user_id(payload.user_id)
        if existing is not None:
            raise ConflictException("Coach profile already exists for user")

        fields = payload.model_dump(exclude={"user_id"})
        fields["mobile_number"] = _normalized_mobile(payload.mobile_number)
        return await self.repository.create_profile(payload.user_id, **fields)

    async def update_profile(
        self,
        profile_id: UUID,
        payload: CoachProfileUpdate,
        actor: User,
    ) -> CoachProfile:
        """Update coach profile; an empty mobile number clears it."""
        profile = await self.get_profile(profile_id)
        self._ensure_owner_or_admin(actor, profile.user_id, "update")

        changes = payload.model_dump(exclude_unset=True)
        if "mobile_number" in changes:
            changes["mobile_number"] = _normalized_mobile(changes["mobile_number"])
        return await self.repository.update_profile(profile, **changes)

    async def get_profile(self, profile_id: UUID) -> CoachProfile:
        profile = await self.repository.get_profile_by_id(profile_id)
        if profile is None:
            raise NotFoundException("Coach profile not found")
        return profile

    async def list_profiles(self, limit: int, offset: int) -> tuple[list[CoachProfile], int]:
        return await self.repository.list_profiles(limit=limit, offset=offset)


async def get_coaches_service(session: AsyncSession = Depends(get_db_session)) -> CoachesService:
    """Dependency provider for coaches service."""
    return CoachesService(CoachesRepository(session))

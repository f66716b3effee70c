"""Coaches repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.coaches.models import CoachProfile


class CoachesRepository:
    """DB operations for coaches domain."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_profile(self, user_id: UUID, **fields) -> CoachProfile:
        profile = CoachProfile(user_id=user_id, **fields)
        self.session.add(profile)
        await self.session.flush()
        return profile

    async def get_profile_by_id(self, profile_id: UUID) -> CoachProfile | None:
        stmt = select(CoachProfile).where(CoachProfile.id == profile_id)
        return await self.session.scalar(stmt)

    async def get_profile_by_user_id(self, user_id: UUID) -> CoachProfile | None:
        stmt = select(CoachProfile).where(CoachProfile.user_id == user_id)
        return await self.session.scalar(stmt)

    async def list_profiles(self, limit: int, offset: int) -> tuple[list[CoachProfile], int]:
        base_stmt: Select[tuple[CoachProfile]] = select(CoachProfile)
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(CoachProfile.display_name.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def list_profiles_with_mobile_number(self) -> list[CoachProfile]:
        """Coaches that can be reached on WhatsApp, oldest first."""
        stmt = (
            select(CoachProfile)
            .where(CoachProfile.mobile_number.is_not(None))
            .order_by(CoachProfile.created_at.asc())
        )
        return (await self.session.scalars(stmt)).all()

    async def update_profile(self, profile: CoachProfile, **changes) -> CoachProfile:
        for key, value in changes.items():
            setattr(profile, key, value)
        await self.session.flush()
        return profile

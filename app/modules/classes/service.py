"""Gym class business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.modules.classes.models import GymClass
from app.modules.classes.repository import ClassesRepository
from app.modules.classes.schemas import GymClassCreate, GymClassUpdate
from app.modules.coaches.repository import CoachesRepository
from app.modules.identity.models import User
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException


class ClassesService:
    """Class timetable service."""

    def __init__(self, repository: ClassesRepository, coaches_repository: CoachesRepository) -> None:
        self.repository = repository
        self.coaches_repository = coaches_repository

    async def _ensure_can_manage(self, actor: User, coach_id: UUID | None) -> None:
        if actor.role.name == RoleEnum.ADMIN:
            return
        if actor.role.name == RoleEnum.COACH and coach_id is not None:
            profile = await self.coaches_repository.get_profile_by_user_id(actor.id)
            if profile is not None and profile.id == coach_id:
                return
        raise UnauthorizedException("Only admin or the assigned coach can manage this class")

    async def create_class(self, payload: GymClassCreate, actor: User) -> GymClass:
        await self._ensure_can_manage(actor, payload.coach_id)
        if payload.coach_id is not None:
            coach = await self.coaches_repository.get_profile_by_id(payload.coach_id)
            if coach is None:
                raise NotFoundException("Coach not found")
        return await self.repository.create_class(**payload.model_dump())

    async def update_class(self, class_id: UUID, payload: GymClassUpdate, actor: User) -> GymClass:
        gym_class = await self.get_class(class_id)
        await self._ensure_can_manage(actor, gym_class.coach_id)

        changes = payload.model_dump(exclude_unset=True)
        min_age = changes.get("min_age", gym_class.min_age)
        max_age = changes.get("max_age", gym_class.max_age)
        if min_age is not None and max_age is not None and min_age > max_age:
            raise BusinessRuleException("min_age must not exceed max_age")
        if "coach_id" in changes and actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can reassign a class")
        return await self.repository.update_class(gym_class, **changes)

    async def get_class(self, class_id: UUID) -> GymClass:
        gym_class = await self.repository.get_class_by_id(class_id)
        if gym_class is None:
            raise NotFoundException("Class not found")
        return gym_class

    async def list_classes(
        self,
        coach_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[GymClass], int]:
        return await self.repository.list_classes(coach_id=coach_id, limit=limit, offset=offset)


async def get_classes_service(session: AsyncSession = Depends(get_db_session)) -> ClassesService:
    """Dependency provider for classes service."""
    return ClassesService(ClassesRepository(session), CoachesRepository(session))

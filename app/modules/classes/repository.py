"""Gym class repository layer."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.classes.models import GymClass


class ClassesRepository:
    """DB operations for the class timetable."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_class(self, **fields) -> GymClass:
        gym_class = GymClass(**fields)
        self.session.add(gym_class)
        await self.session.flush()
        return gym_class

    async def get_class_by_id(self, class_id: UUID) -> GymClass | None:
        stmt = select(GymClass).where(GymClass.id == class_id)
        return await self.session.scalar(stmt)

    async def list_classes(
        self,
        coach_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[GymClass], int]:
        base_stmt: Select[tuple[GymClass]] = select(GymClass)
        if coach_id is not None:
            base_stmt = base_stmt.where(GymClass.coach_id == coach_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(GymClass.weekday.asc(), GymClass.start_time.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def list_class_ids_for_coach(self, coach_id: UUID) -> list[UUID]:
        stmt = select(GymClass.id).where(GymClass.coach_id == coach_id)
        return list((await self.session.scalars(stmt)).all())

    async def update_class(self, gym_class: GymClass, **changes) -> GymClass:
        for key, value in changes.items():
            setattr(gym_class, key, value)
        await self.session.flush()
        return gym_class

"""Family repository layer."""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.modules.family.models import Dependent


class FamilyRepository:
    """DB operations for dependents."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_dependent(self, member_id: UUID, full_name: str, date_of_birth: date) -> Dependent:
        dependent = Dependent(member_id=member_id, full_name=full_name, date_of_birth=date_of_birth)
        self.session.add(dependent)
        await self.session.flush()
        return dependent

    async def get_dependent_by_id(self, dependent_id: UUID) -> Dependent | None:
        stmt = select(Dependent).where(Dependent.id == dependent_id)
        return await self.session.scalar(stmt)

    async def list_dependents(self, member_id: UUID) -> list[Dependent]:
        stmt = (
            select(Dependent)
            .where(Dependent.member_id == member_id)
            .order_by(Dependent.created_at.asc())
        )
        return list((await self.session.scalars(stmt)).all())

    async def delete_dependent(self, dependent: Dependent) -> None:
        await self.session.delete(dependent)
        await self.session.flush()

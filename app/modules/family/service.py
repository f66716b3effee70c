"""Family business logic layer.

A booking's participant is either the paying member or one of that member's
dependents. Checkout resolves the participant here before any provider call.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import RoleEnum
from app.modules.audit.repository import AuditRepository
from app.modules.family.models import Dependent
from app.modules.family.repository import FamilyRepository
from app.modules.family.schemas import DependentCreate
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from app.shared.utils import utc_now


@dataclass(frozen=True, slots=True)
class Participant:
    id: UUID
    full_name: str | None
    date_of_birth: date | None
    is_dependent: bool = False


def age_on(date_of_birth: date, on_date: date) -> int:
    """Completed years at ``on_date``."""
    years = on_date.year - date_of_birth.year
    if (on_date.month, on_date.day) < (date_of_birth.month, date_of_birth.day):
        years -= 1
    return years


def check_age_limits(
    date_of_birth: date | None,
    min_age: int | None,
    max_age: int | None,
    on_date: date,
) -> None:
    """Reject a participant outside a class's age range; unknown ages pass."""
    if date_of_birth is None or (min_age is None and max_age is None):
        return
    age = age_on(date_of_birth, on_date)
    if min_age is not None and age < min_age:
        raise ValidationException(f"Participant is {age}, this class starts at age {min_age}")
    if max_age is not None and age > max_age:
        raise ValidationException(f"Participant is {age}, this class is for ages up to {max_age}")


class FamilyService:
    """Dependents of gym members."""

    def __init__(
        self,
        repository: FamilyRepository,
        identity_repository: IdentityRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.identity_repository = identity_repository
        self.audit_repository = audit_repository

    @staticmethod
    def _member_id_for(actor: User, requested: UUID | None) -> UUID:
        if requested is None or requested == actor.id:
            return actor.id
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can manage another member's dependents")
        return requested

    async def list_dependents(self, actor: User, member_id: UUID | None = None) -> list[Dependent]:
        return await self.repository.list_dependents(self._member_id_for(actor, member_id))

    async def create_dependent(self, payload: DependentCreate, actor: User) -> Dependent:
        member_id = self._member_id_for(actor, payload.member_id)
        if payload.date_of_birth > utc_now().date():
            raise BusinessRuleException("Date of birth cannot be in the future")
        if member_id != actor.id and await self.identity_repository.get_user_by_id(member_id) is None:
            raise NotFoundException("Member not found")

        dependent = await self.repository.create_dependent(
            member_id=member_id,
            full_name=payload.full_name.strip(),
            date_of_birth=payload.date_of_birth,
        )
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="family.dependent.create",
            entity_type="dependent",
            entity_id=str(dependent.id),
            payload={"member_id": str(member_id)},
        )
        return dependent

    async def delete_dependent(self, dependent_id: UUID, actor: User) -> None:
        dependent = await self.repository.get_dependent_by_id(dependent_id)
        if dependent is None:
            raise NotFoundException("Dependent not found")
        if actor.role.name != RoleEnum.ADMIN and dependent.member_id != actor.id:
            raise UnauthorizedException("Only admin or the parent member can remove a dependent")

        await self.repository.delete_dependent(dependent)
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="family.dependent.delete",
            entity_type="dependent",
            entity_id=str(dependent_id),
            payload={"member_id": str(dependent.member_id)},
        )

    async def resolve_participant(self, member_id: UUID, participant_id: UUID | None) -> Participant:
        """The member themselves, or a dependent owned by that member."""
        if participant_id is None or participant_id == member_id:
            member = await self.identity_repository.get_user_by_id(member_id)
            if member is None:
                raise NotFoundException("Member not found")
            return Participant(id=member.id, full_name=member.full_name, date_of_birth=member.date_of_birth)

        dependent = await self.repository.get_dependent_by_id(participant_id)
        if dependent is None or dependent.member_id != member_id:
            raise ValidationException("participant_id must be the member or one of their dependents")
        return Participant(
            id=dependent.id,
            full_name=dependent.full_name,
            date_of_birth=dependent.date_of_birth,
            is_dependent=True,
        )


async def get_family_service(session: AsyncSession = Depends(get_db_session)) -> FamilyService:
    """Dependency provider for family service."""
    return FamilyService(FamilyRepository(session), IdentityRepository(session), AuditRepository(session))

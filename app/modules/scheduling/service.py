"""Scheduling business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import AppointmentStatusEnum, RoleEnum
from app.modules.audit.repository import AuditRepository
from app.modules.coaches.repository import CoachesRepository
from app.modules.identity.models import User
from app.modules.scheduling.models import CoachAppointment, CoachSlot
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.schemas import SlotCreate
from app.shared.exceptions import (
    BusinessRuleException,
    ConflictException,
    NotFoundException,
    UnauthorizedException,
)
from app.shared.utils import ensure_utc, utc_now


class SchedulingService:
    """Coach slot and appointment service."""

    def __init__(
        self,
        repository: SchedulingRepository,
        coaches_repository: CoachesRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.coaches_repository = coaches_repository
        self.audit_repository = audit_repository

    async def _is_slot_coach(self, actor: User, coach_id: UUID) -> bool:
        if actor.role.name != RoleEnum.COACH:
            return False
        profile = await self.coaches_repository.get_profile_by_user_id(actor.id)
        return profile is not None and profile.id == coach_id

    async def create_slot(self, payload: SlotCreate, actor: User) -> CoachSlot:
        """Publish a bookable slot (owning coach or admin)."""
        if actor.role.name != RoleEnum.ADMIN and not await self._is_slot_coach(actor, payload.coach_id):
            raise UnauthorizedException("Only admin or the owning coach can create slots")

        coach = await self.coaches_repository.get_profile_by_id(payload.coach_id)
        if coach is None:
            raise NotFoundException("Coach not found")

        start_at = ensure_utc(payload.start_at)
        end_at = ensure_utc(payload.end_at)
        if end_at <= start_at:
            raise BusinessRuleException("Slot end_at must be after start_at")
        if start_at <= utc_now():
            raise BusinessRuleException("Slot start_at must be in the future")

        return await self.repository.create_slot(
            coach_id=payload.coach_id,
            slot_type=payload.slot_type,
            title=payload.title,
            description=payload.description,
            start_at=start_at,
            end_at=end_at,
            capacity=payload.capacity,
            price=payload.price,
            location=payload.location,
        )

    async def list_open_slots(
        self,
        coach_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[CoachSlot], int]:
        """List future slots with no active appointment."""
        return await self.repository.list_open_slots(
            coach_id=coach_id,
            now=utc_now(),
            limit=limit,
            offset=offset,
        )

    async def get_open_slot(self, slot_id: UUID) -> CoachSlot:
        """Return a slot that can still be sold."""
        slot = await self.repository.get_slot_by_id(slot_id)
        if slot is None:
            raise NotFoundException("Slot not found")
        if await self.repository.get_active_appointment_for_slot(slot_id) is not None:
            raise ConflictException("Slot is already booked")
        return slot

    async def list_my_appointments(
        self,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[CoachAppointment], int]:
        return await self.repository.list_member_appointments(actor.id, limit=limit, offset=offset)

    async def cancel_appointment(self, appointment_id: UUID, actor: User) -> CoachAppointment:
        """Cancel an appointment and free its slot."""
        appointment = await self.repository.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise NotFoundException("Appointment not found")

        is_owner = appointment.member_id is not None and appointment.member_id == actor.id
        if (
            actor.role.name != RoleEnum.ADMIN
            and not is_owner
            and not await self._is_slot_coach(actor, appointment.slot.coach_id)
        ):
            raise UnauthorizedException("You cannot manage this appointment")

        if appointment.status == AppointmentStatusEnum.CANCELED:
            return appointment

        appointment = await self.repository.cancel_appointment(appointment, utc_now())
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="scheduling.appointment.cancel",
            entity_type="coach_appointment",
            entity_id=str(appointment.id),
            payload={"slot_id": str(appointment.slot_id)},
        )
        return appointment


async def get_scheduling_service(session: AsyncSession = Depends(get_db_session)) -> SchedulingService:
    """Dependency provider for scheduling service."""
    return SchedulingService(
        SchedulingRepository(session),
        CoachesRepository(session),
        AuditRepository(session),
    )

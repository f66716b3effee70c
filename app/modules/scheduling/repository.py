"""Scheduling repository layer."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.database import dialect_insert
from app.core.enums import AppointmentStatusEnum, SlotTypeEnum
from app.modules.scheduling.models import CoachAppointment, CoachSlot


class SchedulingRepository:
    """DB access for coach slots and appointments."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_slot(
        self,
        coach_id: UUID,
        slot_type: SlotTypeEnum,
        title: str,
        description: str,
        start_at: datetime,
        end_at: datetime,
        capacity: int,
        price: Decimal,
        location: str | None,
    ) -> CoachSlot:
        slot = CoachSlot(
            coach_id=coach_id,
            slot_type=slot_type,
            title=title,
            description=description,
            start_at=start_at,
            end_at=end_at,
            capacity=capacity,
            price=price,
            location=location,
        )
        self.session.add(slot)
        await self.session.flush()
        return slot

    async def get_slot_by_id(self, slot_id: UUID) -> CoachSlot | None:
        stmt = select(CoachSlot).where(CoachSlot.id == slot_id)
        return await self.session.scalar(stmt)

    def _active_appointment_exists(self):
        return (
            select(CoachAppointment.id)
            .where(
                CoachAppointment.slot_id == CoachSlot.id,
                CoachAppointment.status != AppointmentStatusEnum.CANCELED,
            )
            .exists()
        )

    async def list_open_slots(
        self,
        coach_id: UUID | None,
        now: datetime,
        limit: int,
        offset: int,
    ) -> tuple[list[CoachSlot], int]:
        base_stmt: Select[tuple[CoachSlot]] = select(CoachSlot).where(
            CoachSlot.start_at > now,
            ~self._active_appointment_exists(),
        )
        if coach_id is not None:
            base_stmt = base_stmt.where(CoachSlot.coach_id == coach_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(CoachSlot.start_at.asc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def get_active_appointment_for_slot(self, slot_id: UUID) -> CoachAppointment | None:
        stmt = select(CoachAppointment).where(
            CoachAppointment.slot_id == slot_id,
            CoachAppointment.status != AppointmentStatusEnum.CANCELED,
        )
        return await self.session.scalar(stmt)

    async def get_appointment_by_id(self, appointment_id: UUID) -> CoachAppointment | None:
        stmt = (
            select(CoachAppointment)
            .options(selectinload(CoachAppointment.slot))
            .where(CoachAppointment.id == appointment_id)
        )
        return await self.session.scalar(stmt)

    async def list_member_appointments(
        self,
        member_id: UUID,
        limit: int,
        offset: int,
    ) -> tuple[list[CoachAppointment], int]:
        base_stmt: Select[tuple[CoachAppointment]] = select(CoachAppointment).where(
            CoachAppointment.member_id == member_id,
        )
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(CoachAppointment.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def insert_appointment_if_absent(
        self,
        appointment_id: UUID,
        slot_id: UUID,
        member_id: UUID | None,
        participant_id: UUID | None,
        participant_name: str | None,
        stripe_session_id: str,
    ) -> bool:
        """Insert a CONFIRMED appointment; return False when it already exists."""
        stmt = (
            dialect_insert(self.session, CoachAppointment)
            .values(
                id=appointment_id,
                slot_id=slot_id,
                member_id=member_id,
                participant_id=participant_id,
                participant_name=participant_name,
                status=AppointmentStatusEnum.CONFIRMED,
                stripe_session_id=stripe_session_id,
            )
            .on_conflict_do_nothing()
            .returning(CoachAppointment.id)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def cancel_appointment(
        self,
        appointment: CoachAppointment,
        canceled_at: datetime,
    ) -> CoachAppointment:
        appointment.status = AppointmentStatusEnum.CANCELED
        appointment.canceled_at = canceled_at
        await self.session.flush()
        return appointment

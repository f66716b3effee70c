"""Booking business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ConfirmationStatusEnum, RoleEnum
from app.modules.audit.repository import AuditRepository
from app.modules.booking.models import Booking
from app.modules.booking.repository import BookingRepository
from app.modules.classes.repository import ClassesRepository
from app.modules.coaches.repository import CoachesRepository
from app.modules.identity.models import User
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException
from app.shared.utils import utc_now

ALLOWED_CONFIRMATION_TRANSITIONS: dict[ConfirmationStatusEnum, set[ConfirmationStatusEnum]] = {
    ConfirmationStatusEnum.PENDING: {ConfirmationStatusEnum.CONFIRMED, ConfirmationStatusEnum.CANCELED},
    ConfirmationStatusEnum.CONFIRMED: {ConfirmationStatusEnum.CANCELED},
    ConfirmationStatusEnum.CANCELED: set(),
}


def validate_confirmation_transition(
    current: ConfirmationStatusEnum,
    target: ConfirmationStatusEnum,
) -> bool:
    """Return False for a same-status no-op; raise on a backwards move."""
    if current == target:
        return False
    if target not in ALLOWED_CONFIRMATION_TRANSITIONS[current]:
        raise BusinessRuleException(f"Invalid confirmation status transition: {current} -> {target}")
    return True


class BookingService:
    """Class booking service with forward-only confirmation rules."""

    def __init__(
        self,
        booking_repository: BookingRepository,
        classes_repository: ClassesRepository,
        coaches_repository: CoachesRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.booking_repository = booking_repository
        self.classes_repository = classes_repository
        self.coaches_repository = coaches_repository
        self.audit_repository = audit_repository

    async def _coach_profile_id(self, actor: User) -> UUID | None:
        profile = await self.coaches_repository.get_profile_by_user_id(actor.id)
        return profile.id if profile is not None else None

    async def _validate_staff_access(self, booking: Booking, actor: User) -> None:
        if actor.role.name == RoleEnum.ADMIN:
            return
        if actor.role.name == RoleEnum.COACH and booking.gym_class is not None:
            coach_id = await self._coach_profile_id(actor)
            if coach_id is not None and booking.gym_class.coach_id == coach_id:
                return
        raise UnauthorizedException("You cannot manage this booking")

    async def _get_booking(self, booking_id: UUID) -> Booking:
        booking = await self.booking_repository.get_booking_by_id(booking_id)
        if booking is None:
            raise NotFoundException("Booking not found")
        return booking

    async def list_bookings(self, actor: User, limit: int, offset: int) -> tuple[list[Booking], int]:
        """Members see their own bookings, coaches their classes' bookings, admins all."""
        if actor.role.name == RoleEnum.ADMIN:
            return await self.booking_repository.list_bookings(None, None, limit, offset)
        if actor.role.name == RoleEnum.COACH:
            coach_id = await self._coach_profile_id(actor)
            class_ids = await self.classes_repository.list_class_ids_for_coach(coach_id) if coach_id else []
            return await self.booking_repository.list_bookings(None, class_ids, limit, offset)
        return await self.booking_repository.list_bookings(actor.id, None, limit, offset)

    async def confirm_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        await self._validate_staff_access(booking, actor)
        return await self._set_confirmation_status(booking, ConfirmationStatusEnum.CONFIRMED, actor)

    async def cancel_booking(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        if booking.member_id is None or booking.member_id != actor.id:
            await self._validate_staff_access(booking, actor)
        return await self._set_confirmation_status(booking, ConfirmationStatusEnum.CANCELED, actor)

    async def mark_attended(self, booking_id: UUID, actor: User) -> Booking:
        booking = await self._get_booking(booking_id)
        await self._validate_staff_access(booking, actor)
        if booking.confirmation_status == ConfirmationStatusEnum.CANCELED:
            raise BusinessRuleException("Canceled booking cannot be marked attended")
        if booking.attended:
            return booking

        booking.attended = True
        await self.booking_repository.save(booking)
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="booking.attended",
            entity_type="booking",
            entity_id=str(booking.id),
            payload={"class_id": str(booking.class_id) if booking.class_id else None},
        )
        return booking

    async def _set_confirmation_status(
        self,
        booking: Booking,
        target: ConfirmationStatusEnum,
        actor: User,
    ) -> Booking:
        previous_status = booking.confirmation_status
        if not validate_confirmation_transition(previous_status, target):
            return booking

        booking.confirmation_status = target
        if target == ConfirmationStatusEnum.CONFIRMED:
            booking.confirmed_at = utc_now()
        else:
            booking.canceled_at = utc_now()
        await self.booking_repository.save(booking)

        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="booking.confirmation_status.update",
            entity_type="booking",
            entity_id=str(booking.id),
            payload={"from_status": str(previous_status), "to_status": str(target)},
        )
        return booking


async def get_booking_service(session: AsyncSession = Depends(get_db_session)) -> BookingService:
    """Dependency provider for booking service."""
    return BookingService(
        booking_repository=BookingRepository(session),
        classes_repository=ClassesRepository(session),
        coaches_repository=CoachesRepository(session),
        audit_repository=AuditRepository(session),
    )

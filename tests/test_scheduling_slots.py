from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest

import app.modules.scheduling.service as scheduling_service_module
from app.core.enums import AppointmentStatusEnum, RoleEnum, SlotTypeEnum
from app.modules.scheduling.schemas import SlotCreate
from app.modules.scheduling.service import SchedulingService
from app.shared.exceptions import BusinessRuleException, ConflictException, NotFoundException, UnauthorizedException

FIXED_NOW = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)


@dataclass
class FakeSlot:
    id: UUID
    coach_id: UUID
    title: str = "Private 1-on-1"
    slot_type: SlotTypeEnum = SlotTypeEnum.PRIVATE


@dataclass
class FakeAppointment:
    id: UUID
    slot_id: UUID
    slot: FakeSlot
    member_id: UUID | None
    status: AppointmentStatusEnum = AppointmentStatusEnum.CONFIRMED
    canceled_at: datetime | None = None


@dataclass
class FakeSchedulingRepository:
    slots: dict[UUID, FakeSlot] = field(default_factory=dict)
    appointments: dict[UUID, FakeAppointment] = field(default_factory=dict)
    created: list[dict] = field(default_factory=list)

    async def get_slot_by_id(self, slot_id: UUID) -> FakeSlot | None:
        return self.slots.get(slot_id)

    async def get_active_appointment_for_slot(self, slot_id: UUID) -> FakeAppointment | None:
        for appointment in self.appointments.values():
            if appointment.slot_id == slot_id and appointment.status != AppointmentStatusEnum.CANCELED:
                return appointment
        return None

    async def get_appointment_by_id(self, appointment_id: UUID) -> FakeAppointment | None:
        return self.appointments.get(appointment_id)

    async def cancel_appointment(self, appointment: FakeAppointment, canceled_at: datetime) -> FakeAppointment:
        appointment.status = AppointmentStatusEnum.CANCELED
        appointment.canceled_at = canceled_at
        return appointment

    async def create_slot(self, **values) -> SimpleNamespace:
        self.created.append(values)
        return SimpleNamespace(id=uuid4(), **values)


class FakeCoachesRepository:
    def __init__(self, profiles: list[SimpleNamespace] | None = None) -> None:
        self.profiles = profiles or []

    async def get_profile_by_id(self, profile_id: UUID):
        return next((profile for profile in self.profiles if profile.id == profile_id), None)

    async def get_profile_by_user_id(self, user_id: UUID):
        return next((profile for profile in self.profiles if profile.user_id == user_id), None)


class FakeAuditRepository:
    def __init__(self) -> None:
        self.logs: list[dict] = []

    async def create_audit_log(self, **kwargs) -> None:
        self.logs.append(kwargs)


def make_actor(role: RoleEnum) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=role))


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(scheduling_service_module, "utc_now", lambda: FIXED_NOW)


def make_service(
    repository: FakeSchedulingRepository,
    profiles: list[SimpleNamespace] | None = None,
) -> tuple[SchedulingService, FakeAuditRepository]:
    audit_repository = FakeAuditRepository()
    service = SchedulingService(
        repository,  # type: ignore[arg-type]
        FakeCoachesRepository(profiles),  # type: ignore[arg-type]
        audit_repository,  # type: ignore[arg-type]
    )
    return service, audit_repository


def slot_payload(coach_id: UUID, start_in: timedelta = timedelta(days=1)) -> SlotCreate:
    start_at = FIXED_NOW + start_in
    return SlotCreate(
        coach_id=coach_id,
        title="Pad work",
        start_at=start_at,
        end_at=start_at + timedelta(hours=1),
        price=Decimal("30.00"),
    )


@pytest.mark.asyncio
async def test_open_slot_is_returned_until_booked() -> None:
    slot = FakeSlot(id=uuid4(), coach_id=uuid4())
    repository = FakeSchedulingRepository(slots={slot.id: slot})
    service, _ = make_service(repository)

    assert await service.get_open_slot(slot.id) is slot

    repository.appointments[uuid4()] = FakeAppointment(id=uuid4(), slot_id=slot.id, slot=slot, member_id=uuid4())
    with pytest.raises(ConflictException):
        await service.get_open_slot(slot.id)


@pytest.mark.asyncio
async def test_canceled_appointment_frees_the_slot() -> None:
    slot = FakeSlot(id=uuid4(), coach_id=uuid4())
    member = make_actor(RoleEnum.MEMBER)
    appointment = FakeAppointment(id=uuid4(), slot_id=slot.id, slot=slot, member_id=member.id)
    repository = FakeSchedulingRepository(slots={slot.id: slot}, appointments={appointment.id: appointment})
    service, audit_repository = make_service(repository)

    canceled = await service.cancel_appointment(appointment.id, member)

    assert canceled.status == AppointmentStatusEnum.CANCELED
    assert canceled.canceled_at == FIXED_NOW
    assert audit_repository.logs[0]["action"] == "scheduling.appointment.cancel"
    assert await service.get_open_slot(slot.id) is slot


@pytest.mark.asyncio
async def test_unknown_slot_is_not_found() -> None:
    service, _ = make_service(FakeSchedulingRepository())

    with pytest.raises(NotFoundException):
        await service.get_open_slot(uuid4())


@pytest.mark.asyncio
async def test_stranger_cannot_cancel_appointment() -> None:
    slot = FakeSlot(id=uuid4(), coach_id=uuid4())
    appointment = FakeAppointment(id=uuid4(), slot_id=slot.id, slot=slot, member_id=uuid4())
    repository = FakeSchedulingRepository(slots={slot.id: slot}, appointments={appointment.id: appointment})
    service, _ = make_service(repository)

    with pytest.raises(UnauthorizedException):
        await service.cancel_appointment(appointment.id, make_actor(RoleEnum.MEMBER))


@pytest.mark.asyncio
async def test_coach_publishes_own_slot() -> None:
    coach_user = make_actor(RoleEnum.COACH)
    profile = SimpleNamespace(id=uuid4(), user_id=coach_user.id)
    repository = FakeSchedulingRepository()
    service, _ = make_service(repository, [profile])

    await service.create_slot(slot_payload(profile.id), coach_user)

    assert repository.created[0]["coach_id"] == profile.id
    assert repository.created[0]["price"] == Decimal("30.00")


@pytest.mark.asyncio
async def test_coach_cannot_publish_for_another_coach() -> None:
    coach_user = make_actor(RoleEnum.COACH)
    other = SimpleNamespace(id=uuid4(), user_id=uuid4())
    service, _ = make_service(FakeSchedulingRepository(), [other])

    with pytest.raises(UnauthorizedException):
        await service.create_slot(slot_payload(other.id), coach_user)


@pytest.mark.asyncio
async def test_past_slot_is_rejected() -> None:
    profile = SimpleNamespace(id=uuid4(), user_id=uuid4())
    service, _ = make_service(FakeSchedulingRepository(), [profile])

    with pytest.raises(BusinessRuleException):
        await service.create_slot(slot_payload(profile.id, start_in=-timedelta(hours=2)), make_actor(RoleEnum.ADMIN))

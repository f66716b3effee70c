from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

import app.main as main_module
import app.modules.family.service as family_service_module
from app.core.enums import RoleEnum
from app.modules.family.schemas import DependentCreate
from app.modules.family.service import FamilyService, age_on, check_age_limits, get_family_service
from app.modules.identity.service import get_current_user
from app.shared.exceptions import (
    BusinessRuleException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

FIXED_NOW = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)


@dataclass
class FakeFamilyRepository:
    dependents: dict[UUID, SimpleNamespace] = field(default_factory=dict)
    deleted: list[UUID] = field(default_factory=list)

    async def create_dependent(self, member_id: UUID, full_name: str, date_of_birth: date) -> SimpleNamespace:
        dependent = SimpleNamespace(
            id=uuid4(),
            member_id=member_id,
            full_name=full_name,
            date_of_birth=date_of_birth,
            created_at=FIXED_NOW,
        )
        self.dependents[dependent.id] = dependent
        return dependent

    async def get_dependent_by_id(self, dependent_id: UUID) -> SimpleNamespace | None:
        return self.dependents.get(dependent_id)

    async def list_dependents(self, member_id: UUID) -> list[SimpleNamespace]:
        return [dependent for dependent in self.dependents.values() if dependent.member_id == member_id]

    async def delete_dependent(self, dependent: SimpleNamespace) -> None:
        self.deleted.append(dependent.id)
        self.dependents.pop(dependent.id, None)


class FakeIdentityRepository:
    def __init__(self, users: list[SimpleNamespace] | None = None) -> None:
        self.users = {user.id: user for user in users or []}

    async def get_user_by_id(self, user_id: UUID):
        return self.users.get(user_id)


class FakeAuditRepository:
    def __init__(self) -> None:
        self.logs: list[dict] = []

    async def create_audit_log(self, **kwargs) -> None:
        self.logs.append(kwargs)


def make_actor(role: RoleEnum = RoleEnum.MEMBER, date_of_birth: date | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        role=SimpleNamespace(name=role),
        full_name="Jamie Member",
        date_of_birth=date_of_birth,
    )


def make_dependent(member_id: UUID, date_of_birth: date = date(2015, 4, 9)) -> SimpleNamespace:
    return SimpleNamespace(
        id=uuid4(),
        member_id=member_id,
        full_name="Robin Member",
        date_of_birth=date_of_birth,
        created_at=FIXED_NOW,
    )


@pytest.fixture(autouse=True)
def fixed_clock(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(family_service_module, "utc_now", lambda: FIXED_NOW)


def make_service(
    repository: FakeFamilyRepository | None = None,
    users: list[SimpleNamespace] | None = None,
) -> tuple[FamilyService, FakeFamilyRepository, FakeAuditRepository]:
    repository = repository or FakeFamilyRepository()
    audit_repository = FakeAuditRepository()
    service = FamilyService(
        repository,  # type: ignore[arg-type]
        FakeIdentityRepository(users),  # type: ignore[arg-type]
        audit_repository,  # type: ignore[arg-type]
    )
    return service, repository, audit_repository


@pytest.mark.asyncio
async def test_member_adds_and_lists_own_dependent() -> None:
    member = make_actor()
    service, repository, audit_repository = make_service()

    dependent = await service.create_dependent(
        DependentCreate(full_name="  Robin Member ", date_of_birth=date(2015, 4, 9)),
        member,
    )

    assert dependent.member_id == member.id
    assert dependent.full_name == "Robin Member"
    assert await service.list_dependents(member) == [dependent]
    assert audit_repository.logs[0]["action"] == "family.dependent.create"


@pytest.mark.asyncio
async def test_admin_adds_dependent_for_existing_member_only() -> None:
    admin = make_actor(RoleEnum.ADMIN)
    member = make_actor()
    service, _, _ = make_service(users=[member])

    dependent = await service.create_dependent(
        DependentCreate(full_name="Robin Member", date_of_birth=date(2015, 4, 9), member_id=member.id),
        admin,
    )
    assert dependent.member_id == member.id

    with pytest.raises(NotFoundException):
        await service.create_dependent(
            DependentCreate(full_name="Robin Member", date_of_birth=date(2015, 4, 9), member_id=uuid4()),
            admin,
        )


@pytest.mark.asyncio
async def test_member_cannot_manage_another_members_family() -> None:
    member = make_actor()
    service, repository, _ = make_service()

    with pytest.raises(UnauthorizedException):
        await service.create_dependent(
            DependentCreate(full_name="Robin Member", date_of_birth=date(2015, 4, 9), member_id=uuid4()),
            member,
        )
    with pytest.raises(UnauthorizedException):
        await service.list_dependents(member, uuid4())
    assert repository.dependents == {}


@pytest.mark.asyncio
async def test_future_date_of_birth_is_rejected() -> None:
    service, repository, _ = make_service()

    with pytest.raises(BusinessRuleException):
        await service.create_dependent(
            DependentCreate(full_name="Robin Member", date_of_birth=date(2026, 10, 18)),
            make_actor(),
        )
    assert repository.dependents == {}


@pytest.mark.asyncio
async def test_only_parent_or_admin_removes_dependent() -> None:
    member = make_actor()
    dependent = make_dependent(member.id)
    other = make_dependent(member.id)
    repository = FakeFamilyRepository({dependent.id: dependent, other.id: other})
    service, _, audit_repository = make_service(repository)

    with pytest.raises(UnauthorizedException):
        await service.delete_dependent(dependent.id, make_actor())
    with pytest.raises(NotFoundException):
        await service.delete_dependent(uuid4(), member)

    await service.delete_dependent(dependent.id, member)
    await service.delete_dependent(other.id, make_actor(RoleEnum.ADMIN))

    assert repository.deleted == [dependent.id, other.id]
    assert [log["action"] for log in audit_repository.logs] == ["family.dependent.delete"] * 2


@pytest.mark.asyncio
async def test_resolve_participant_accepts_member_and_own_dependents() -> None:
    member = make_actor(date_of_birth=date(1990, 5, 1))
    dependent = make_dependent(member.id)
    stranger_child = make_dependent(uuid4())
    repository = FakeFamilyRepository({dependent.id: dependent, stranger_child.id: stranger_child})
    service, _, _ = make_service(repository, users=[member])

    self_participant = await service.resolve_participant(member.id, None)
    assert self_participant.id == member.id
    assert self_participant.date_of_birth == date(1990, 5, 1)
    assert self_participant.is_dependent is False
    assert (await service.resolve_participant(member.id, member.id)).id == member.id

    child = await service.resolve_participant(member.id, dependent.id)
    assert child.id == dependent.id
    assert child.full_name == "Robin Member"
    assert child.is_dependent is True

    with pytest.raises(ValidationException):
        await service.resolve_participant(member.id, stranger_child.id)
    with pytest.raises(ValidationException):
        await service.resolve_participant(member.id, uuid4())
    with pytest.raises(NotFoundException):
        await service.resolve_participant(uuid4(), None)


def test_age_is_counted_in_completed_years() -> None:
    assert age_on(date(2018, 10, 17), date(2026, 10, 17)) == 8
    assert age_on(date(2018, 10, 18), date(2026, 10, 17)) == 7
    assert age_on(date(2016, 2, 29), date(2026, 2, 28)) == 9


def test_age_limits_bound_both_ends() -> None:
    on_date = date(2026, 10, 17)

    check_age_limits(date(2016, 1, 1), 8, 12, on_date)
    check_age_limits(None, 8, 12, on_date)
    check_age_limits(date(2025, 1, 1), None, None, on_date)

    with pytest.raises(ValidationException, match="starts at age 8"):
        check_age_limits(date(2020, 1, 1), 8, None, on_date)
    with pytest.raises(ValidationException, match="up to 12"):
        check_age_limits(date(2010, 1, 1), None, 12, on_date)


def test_family_routes_create_list_and_delete() -> None:
    member = make_actor()
    service, repository, _ = make_service()
    main_module.app.dependency_overrides[get_family_service] = lambda: service
    main_module.app.dependency_overrides[get_current_user] = lambda: member
    try:
        client = TestClient(main_module.app)
        created = client.post(
            "/api/v1/family/dependents",
            json={"full_name": "Robin Member", "date_of_birth": "2015-04-09"},
        )
        listed = client.get("/api/v1/family/dependents")
        deleted = client.delete(f"/api/v1/family/dependents/{created.json()['id']}")
        future = client.post(
            "/api/v1/family/dependents",
            json={"full_name": "Robin Member", "date_of_birth": "2030-01-01"},
        )
    finally:
        main_module.app.dependency_overrides.clear()

    assert created.status_code == 201
    assert created.json()["member_id"] == str(member.id)
    assert [item["full_name"] for item in listed.json()] == ["Robin Member"]
    assert deleted.status_code == 204
    assert repository.dependents == {}
    assert future.status_code == 422

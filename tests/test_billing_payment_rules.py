from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from sqlalchemy.dialects import postgresql

import app.modules.billing.service as billing_service_module
from app.core.enums import (
    ConfirmationStatusEnum,
    PaymentMethodEnum,
    RoleEnum,
    TransactionSourceEnum,
    TransactionStatusEnum,
)
from app.modules.billing.repository import BillingRepository
from app.modules.billing.service import BillingService
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException


@dataclass
class FakeTransaction:
    id: UUID
    stripe_session_id: str
    status: TransactionStatusEnum = TransactionStatusEnum.PAID
    confirmation_status: ConfirmationStatusEnum = ConfirmationStatusEnum.PENDING
    refunded_at: datetime | None = None


class FakeBillingRepository:
    def __init__(self, transactions: list[FakeTransaction] | None = None) -> None:
        self._transactions = {item.id: item for item in transactions or []}
        self.list_calls: list[UUID | None] = []

    async def get_transaction_by_id(self, transaction_id: UUID) -> FakeTransaction | None:
        return self._transactions.get(transaction_id)

    async def get_transaction_by_session_id(self, stripe_session_id: str) -> FakeTransaction | None:
        for transaction in self._transactions.values():
            if transaction.stripe_session_id == stripe_session_id:
                return transaction
        return None

    async def set_transaction_confirmation_status(
        self,
        transaction: FakeTransaction,
        status: ConfirmationStatusEnum,
    ) -> FakeTransaction:
        transaction.confirmation_status = status
        return transaction

    async def mark_transaction_refunded(
        self,
        transaction: FakeTransaction,
        refunded_at: datetime,
    ) -> FakeTransaction:
        transaction.status = TransactionStatusEnum.REFUNDED
        transaction.refunded_at = refunded_at
        return transaction

    async def list_transactions(self, member_id: UUID | None, limit: int, offset: int):
        self.list_calls.append(member_id)
        return [], 0

    async def list_guest_bookings(self, limit: int, offset: int):
        return [], 0


class FakeAuditRepository:
    def __init__(self) -> None:
        self.audit_logs: list[dict] = []

    async def create_audit_log(
        self,
        actor_id: UUID | None,
        action: str,
        entity_type: str,
        entity_id: str | None,
        payload: dict,
    ) -> None:
        self.audit_logs.append(
            {
                "actor_id": str(actor_id) if actor_id is not None else None,
                "action": action,
                "entity_type": entity_type,
                "entity_id": entity_id,
                "payload": payload,
            },
        )


class FakePostgresSession:
    def get_bind(self):
        return SimpleNamespace(dialect=SimpleNamespace(name="postgresql"))


def make_actor(role: RoleEnum) -> SimpleNamespace:
    return SimpleNamespace(id=uuid4(), role=SimpleNamespace(name=role))


def make_service(
    transactions: list[FakeTransaction] | None = None,
) -> tuple[BillingService, FakeBillingRepository, FakeAuditRepository]:
    repository = FakeBillingRepository(transactions)
    audit_repo = FakeAuditRepository()
    service = BillingService(repository=repository, audit_repository=audit_repo)
    return service, repository, audit_repo


def compile_upsert(values: dict) -> str:
    repository = BillingRepository(FakePostgresSession())  # type: ignore[arg-type]
    stmt = repository.build_transaction_upsert(values)
    return str(stmt.compile(dialect=postgresql.dialect()))


def test_transaction_upsert_conflicts_on_stripe_session_id() -> None:
    sql = compile_upsert(
        {
            "stripe_session_id": "cs_test_1",
            "amount": Decimal("10.00"),
            "currency": "GBP",
            "source": TransactionSourceEnum.CLASS,
            "status": TransactionStatusEnum.PAID,
            "payment_method": PaymentMethodEnum.ONE_OFF,
        },
    )

    assert "ON CONFLICT (stripe_session_id) DO UPDATE" in sql
    assert "amount = excluded.amount" in sql
    assert "RETURNING transactions.id" in sql


def test_transaction_upsert_keeps_staff_confirmation_and_refunded_rows() -> None:
    sql = compile_upsert(
        {
            "stripe_session_id": "cs_test_2",
            "amount": Decimal("25.00"),
            "confirmation_status": ConfirmationStatusEnum.PENDING,
            "status": TransactionStatusEnum.PAID,
        },
    )

    assert "confirmation_status = excluded.confirmation_status" not in sql
    assert "stripe_session_id = excluded.stripe_session_id" not in sql
    assert "WHERE transactions.status !=" in sql


@pytest.mark.asyncio
async def test_staff_confirms_transaction_with_audit_log() -> None:
    transaction = FakeTransaction(id=uuid4(), stripe_session_id="cs_test_3")
    service, _, audit_repo = make_service([transaction])

    updated = await service.update_confirmation_status(
        transaction.id,
        ConfirmationStatusEnum.CONFIRMED,
        make_actor(RoleEnum.COACH),
    )

    assert updated.confirmation_status == ConfirmationStatusEnum.CONFIRMED
    assert audit_repo.audit_logs[0]["action"] == "billing.transaction.confirmation.update"
    assert audit_repo.audit_logs[0]["payload"]["stripe_session_id"] == "cs_test_3"


@pytest.mark.asyncio
async def test_confirmation_update_is_idempotent_for_same_status() -> None:
    transaction = FakeTransaction(
        id=uuid4(),
        stripe_session_id="cs_test_4",
        confirmation_status=ConfirmationStatusEnum.CONFIRMED,
    )
    service, _, audit_repo = make_service([transaction])

    await service.update_confirmation_status(
        transaction.id,
        ConfirmationStatusEnum.CONFIRMED,
        make_actor(RoleEnum.ADMIN),
    )

    assert audit_repo.audit_logs == []


@pytest.mark.asyncio
async def test_canceled_transaction_cannot_be_confirmed() -> None:
    transaction = FakeTransaction(
        id=uuid4(),
        stripe_session_id="cs_test_5",
        confirmation_status=ConfirmationStatusEnum.CANCELED,
    )
    service, _, _ = make_service([transaction])

    with pytest.raises(BusinessRuleException):
        await service.update_confirmation_status(
            transaction.id,
            ConfirmationStatusEnum.CONFIRMED,
            make_actor(RoleEnum.ADMIN),
        )


@pytest.mark.asyncio
async def test_member_cannot_confirm_transactions() -> None:
    transaction = FakeTransaction(id=uuid4(), stripe_session_id="cs_test_6")
    service, _, _ = make_service([transaction])

    with pytest.raises(UnauthorizedException):
        await service.update_confirmation_status(
            transaction.id,
            ConfirmationStatusEnum.CONFIRMED,
            make_actor(RoleEnum.MEMBER),
        )


@pytest.mark.asyncio
async def test_confirmation_of_unknown_transaction_raises_not_found() -> None:
    service, _, _ = make_service()

    with pytest.raises(NotFoundException):
        await service.update_confirmation_status(
            uuid4(),
            ConfirmationStatusEnum.CONFIRMED,
            make_actor(RoleEnum.ADMIN),
        )


@pytest.mark.asyncio
async def test_mark_refunded_sets_status_once(monkeypatch: pytest.MonkeyPatch) -> None:
    fixed_now = datetime(2026, 10, 17, 9, 0, tzinfo=UTC)
    monkeypatch.setattr(billing_service_module, "utc_now", lambda: fixed_now)
    transaction = FakeTransaction(id=uuid4(), stripe_session_id="cs_test_7")
    service, _, audit_repo = make_service([transaction])
    admin = make_actor(RoleEnum.ADMIN)

    first = await service.mark_refunded("cs_test_7", "re_1", admin)
    second = await service.mark_refunded("cs_test_7", "re_1", admin)

    assert first is second
    assert transaction.status == TransactionStatusEnum.REFUNDED
    assert transaction.refunded_at == fixed_now
    assert len(audit_repo.audit_logs) == 1
    assert audit_repo.audit_logs[0]["payload"] == {"stripe_session_id": "cs_test_7", "refund_id": "re_1"}


@pytest.mark.asyncio
async def test_mark_refunded_without_ledger_row_returns_none() -> None:
    service, _, audit_repo = make_service()

    assert await service.mark_refunded("cs_missing", "re_2", make_actor(RoleEnum.ADMIN)) is None
    assert audit_repo.audit_logs == []


@pytest.mark.asyncio
async def test_list_transactions_scopes_members_to_own_entries() -> None:
    service, repository, _ = make_service()
    member = make_actor(RoleEnum.MEMBER)

    await service.list_transactions(make_actor(RoleEnum.ADMIN), 20, 0)
    await service.list_transactions(member, 20, 0)

    assert repository.list_calls == [None, member.id]


@pytest.mark.asyncio
async def test_guest_bookings_are_staff_only() -> None:
    service, _, _ = make_service()

    items, total = await service.list_guest_bookings(make_actor(RoleEnum.COACH), 20, 0)
    assert (items, total) == ([], 0)

    with pytest.raises(UnauthorizedException):
        await service.list_guest_bookings(make_actor(RoleEnum.MEMBER), 20, 0)

"""Billing business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import ConfirmationStatusEnum, RoleEnum, TransactionStatusEnum
from app.modules.audit.repository import AuditRepository
from app.modules.billing.models import GuestBooking, Transaction
from app.modules.billing.repository import BillingRepository
from app.modules.booking.service import validate_confirmation_transition
from app.modules.identity.models import User
from app.shared.exceptions import NotFoundException, UnauthorizedException
from app.shared.utils import utc_now


class BillingService:
    """Ledger queries and staff confirmation."""

    def __init__(
        self,
        repository: BillingRepository,
        audit_repository: AuditRepository,
    ) -> None:
        self.repository = repository
        self.audit_repository = audit_repository

    async def list_transactions(
        self,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[Transaction], int]:
        """Admins see the whole ledger, everybody else their own entries."""
        member_id = None if actor.role.name == RoleEnum.ADMIN else actor.id
        return await self.repository.list_transactions(member_id=member_id, limit=limit, offset=offset)

    async def update_confirmation_status(
        self,
        transaction_id: UUID,
        status: ConfirmationStatusEnum,
        actor: User,
    ) -> Transaction:
        """Confirm or cancel a ledger entry (coach or admin)."""
        if actor.role.name not in (RoleEnum.ADMIN, RoleEnum.COACH):
            raise UnauthorizedException("Only staff can confirm transactions")

        transaction = await self.repository.get_transaction_by_id(transaction_id)
        if transaction is None:
            raise NotFoundException("Transaction not found")

        previous_status = transaction.confirmation_status
        if not validate_confirmation_transition(previous_status, status):
            return transaction

        transaction = await self.repository.set_transaction_confirmation_status(transaction, status)
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="billing.transaction.confirmation.update",
            entity_type="transaction",
            entity_id=str(transaction.id),
            payload={
                "from_status": str(previous_status),
                "to_status": str(status),
                "stripe_session_id": transaction.stripe_session_id,
            },
        )
        return transaction

    async def mark_refunded(self, stripe_session_id: str, refund_id: str, actor: User) -> Transaction | None:
        """Flag the ledger row of a refunded checkout; None when no row exists."""
        transaction = await self.repository.get_transaction_by_session_id(stripe_session_id)
        if transaction is None or transaction.status == TransactionStatusEnum.REFUNDED:
            return transaction

        transaction = await self.repository.mark_transaction_refunded(transaction, utc_now())
        await self.audit_repository.create_audit_log(
            actor_id=actor.id,
            action="billing.transaction.refund",
            entity_type="transaction",
            entity_id=str(transaction.id),
            payload={"stripe_session_id": stripe_session_id, "refund_id": refund_id},
        )
        return transaction

    async def list_guest_bookings(
        self,
        actor: User,
        limit: int,
        offset: int,
    ) -> tuple[list[GuestBooking], int]:
        if actor.role.name not in (RoleEnum.ADMIN, RoleEnum.COACH):
            raise UnauthorizedException("Only staff can view guest bookings")
        return await self.repository.list_guest_bookings(limit=limit, offset=offset)


async def get_billing_service(session: AsyncSession = Depends(get_db_session)) -> BillingService:
    """Dependency provider for billing service."""
    return BillingService(
        repository=BillingRepository(session),
        audit_repository=AuditRepository(session),
    )

"""Billing repository layer."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import dialect_insert
from app.core.enums import ConfirmationStatusEnum, TransactionStatusEnum
from app.modules.billing.models import GuestBooking, Transaction
from app.shared.utils import utc_now

# Staff-owned column; a replayed checkout must not reset it.
_UPSERT_PRESERVED_COLUMNS = frozenset({"stripe_session_id", "confirmation_status"})


class BillingRepository:
    """DB access methods for the transaction ledger and guest bookings."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    def build_transaction_upsert(self, values: dict[str, Any]):
        """Build ``INSERT ... ON CONFLICT (stripe_session_id) DO UPDATE ... RETURNING id``.

        A refunded ledger row is left untouched.
        """
        stmt = dialect_insert(self.session, Transaction).values(**values)
        update_columns = {
            key: stmt.excluded[key]
            for key in values
            if key not in _UPSERT_PRESERVED_COLUMNS
        }
        update_columns["updated_at"] = utc_now()
        return stmt.on_conflict_do_update(
            index_elements=[Transaction.stripe_session_id],
            set_=update_columns,
            where=Transaction.status != TransactionStatusEnum.REFUNDED,
        ).returning(Transaction.id)

    async def upsert_transaction(self, values: dict[str, Any]) -> UUID:
        """Create or overwrite the ledger row for ``values['stripe_session_id']``."""
        result = await self.session.execute(self.build_transaction_upsert(values))
        transaction_id = result.scalar_one_or_none()
        if transaction_id is not None:
            return transaction_id

        existing = await self.get_transaction_by_session_id(values["stripe_session_id"])
        return existing.id

    async def get_transaction_by_id(self, transaction_id: UUID) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.id == transaction_id)
        return await self.session.scalar(stmt)

    async def get_transaction_by_session_id(self, stripe_session_id: str) -> Transaction | None:
        stmt = select(Transaction).where(Transaction.stripe_session_id == stripe_session_id)
        return await self.session.scalar(stmt)

    async def list_transactions(
        self,
        member_id: UUID | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Transaction], int]:
        base_stmt: Select[tuple[Transaction]] = select(Transaction)
        if member_id is not None:
            base_stmt = base_stmt.where(Transaction.member_id == member_id)

        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(Transaction.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

    async def set_transaction_confirmation_status(
        self,
        transaction: Transaction,
        status: ConfirmationStatusEnum,
    ) -> Transaction:
        transaction.confirmation_status = status
        await self.session.flush()
        return transaction

    async def mark_transaction_refunded(
        self,
        transaction: Transaction,
        refunded_at: datetime,
    ) -> Transaction:
        transaction.status = TransactionStatusEnum.REFUNDED
        transaction.refunded_at = refunded_at
        await self.session.flush()
        return transaction

    async def insert_guest_booking_if_absent(self, values: dict[str, Any]) -> tuple[UUID, bool]:
        """Insert a guest booking keyed by its checkout session.

        Returns the row id and whether this call created it.
        """
        stmt = (
            dialect_insert(self.session, GuestBooking)
            .values(**values)
            .on_conflict_do_nothing(index_elements=[GuestBooking.stripe_session_id])
            .returning(GuestBooking.id)
        )
        result = await self.session.execute(stmt)
        guest_booking_id = result.scalar_one_or_none()
        if guest_booking_id is not None:
            return guest_booking_id, True

        existing = await self.get_guest_booking_by_session_id(values["stripe_session_id"])
        return existing.id, False

    async def get_guest_booking_by_session_id(self, stripe_session_id: str) -> GuestBooking | None:
        stmt = select(GuestBooking).where(GuestBooking.stripe_session_id == stripe_session_id)
        return await self.session.scalar(stmt)

    async def list_guest_bookings(self, limit: int, offset: int) -> tuple[list[GuestBooking], int]:
        base_stmt: Select[tuple[GuestBooking]] = select(GuestBooking)
        count_stmt = select(func.count()).select_from(base_stmt.subquery())
        total = int((await self.session.scalar(count_stmt)) or 0)

        stmt = base_stmt.order_by(GuestBooking.created_at.desc()).limit(limit).offset(offset)
        items = (await self.session.scalars(stmt)).all()
        return items, total

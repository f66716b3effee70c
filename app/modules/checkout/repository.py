"""Checkout draft repository layer."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import CheckoutDraftStatusEnum, CheckoutFlowEnum, PaymentMethodEnum
from app.modules.checkout.models import CheckoutDraft


class CheckoutRepository:
    """DB operations for checkout drafts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_draft(
        self,
        flow: CheckoutFlowEnum,
        billing_mode: PaymentMethodEnum,
        payload: dict,
        expires_at: datetime,
        member_id: UUID | None,
    ) -> CheckoutDraft:
        draft = CheckoutDraft(
            flow=flow,
            billing_mode=billing_mode,
            payload=payload,
            status=CheckoutDraftStatusEnum.OPEN,
            expires_at=expires_at,
            member_id=member_id,
        )
        self.session.add(draft)
        await self.session.flush()
        return draft

    async def get_draft(self, draft_id: UUID) -> CheckoutDraft | None:
        stmt = select(CheckoutDraft).where(CheckoutDraft.id == draft_id)
        return await self.session.scalar(stmt)

    async def attach_session(self, draft: CheckoutDraft, stripe_session_id: str) -> CheckoutDraft:
        draft.stripe_session_id = stripe_session_id
        await self.session.flush()
        return draft

    async def mark_expired(self, draft: CheckoutDraft) -> CheckoutDraft:
        draft.status = CheckoutDraftStatusEnum.EXPIRED
        await self.session.flush()
        return draft

    async def mark_completed(self, draft_id: UUID, stripe_session_id: str, completed_at: datetime) -> bool:
        """Close an open draft; False when it is unknown or already closed."""
        stmt = (
            update(CheckoutDraft)
            .where(
                CheckoutDraft.id == draft_id,
                CheckoutDraft.status != CheckoutDraftStatusEnum.COMPLETED,
            )
            .values(
                status=CheckoutDraftStatusEnum.COMPLETED,
                stripe_session_id=stripe_session_id,
                completed_at=completed_at,
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return bool(result.rowcount)

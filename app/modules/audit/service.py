"""Audit business logic layer."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db_session
from app.core.enums import OutboxStatusEnum, RoleEnum
from app.modules.audit.models import AuditLog, OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.identity.models import User
from app.shared.exceptions import BusinessRuleException, NotFoundException, UnauthorizedException

DEFAULT_MAX_RETRIES = 5


class AuditService:
    """Admin access to the audit trail and outbox."""

    def __init__(self, repository: AuditRepository, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        self.repository = repository
        self.max_retries = max_retries

    @staticmethod
    def _ensure_admin(actor: User) -> None:
        if actor.role.name != RoleEnum.ADMIN:
            raise UnauthorizedException("Only admin can view audit data")

    async def list_logs(self, actor: User, limit: int, offset: int) -> tuple[list[AuditLog], int]:
        self._ensure_admin(actor)
        return await self.repository.list_audit_logs(limit=limit, offset=offset)

    async def list_pending_outbox(self, actor: User, limit: int) -> list[OutboxEvent]:
        self._ensure_admin(actor)
        return await self.repository.list_pending_outbox(limit)

    async def list_dead_letter_outbox(self, actor: User, limit: int) -> list[OutboxEvent]:
        """Failed events that exhausted their automatic retries."""
        self._ensure_admin(actor)
        return await self.repository.list_dead_letter_outbox(self.max_retries, limit)

    async def requeue_event(self, event_id: UUID, actor: User) -> OutboxEvent:
        """Give a dead-lettered event a fresh set of retries."""
        self._ensure_admin(actor)
        event = await self.repository.get_outbox_event(event_id)
        if event is None:
            raise NotFoundException("Outbox event not found")
        if event.status != OutboxStatusEnum.FAILED:
            raise BusinessRuleException("Only failed events can be requeued")

        event = await self.repository.mark_outbox_pending(event, reset_retries=True)
        await self.repository.create_audit_log(
            actor_id=actor.id,
            action="audit.outbox.requeue",
            entity_type="outbox_event",
            entity_id=str(event.id),
            payload={"event_type": event.event_type, "aggregate_id": event.aggregate_id},
        )
        return event


async def get_audit_service(session: AsyncSession = Depends(get_db_session)) -> AuditService:
    """Dependency provider for audit service."""
    return AuditService(AuditRepository(session))

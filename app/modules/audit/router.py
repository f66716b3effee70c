"""Audit API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from app.modules.audit.schemas import AuditLogRead, OutboxEventRead
from app.modules.audit.service import AuditService, get_audit_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("/logs", response_model=Page[AuditLogRead])
async def list_logs(
    pagination=Depends(get_pagination_params),
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(get_current_user),
) -> Page[AuditLogRead]:
    """List audit logs."""
    items, total = await service.list_logs(current_user, pagination.limit, pagination.offset)
    serialized = [AuditLogRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.get("/outbox/pending", response_model=list[OutboxEventRead])
async def list_pending_outbox(
    limit: int = Query(default=100, ge=1, le=500),
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(get_current_user),
) -> list[OutboxEventRead]:
    items = await service.list_pending_outbox(current_user, limit=limit)
    return [OutboxEventRead.model_validate(item) for item in items]


@router.get("/outbox/dead-letter", response_model=list[OutboxEventRead])
async def list_dead_letter_outbox(
    limit: int = Query(default=100, ge=1, le=500),
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(get_current_user),
) -> list[OutboxEventRead]:
    """List events that exhausted automatic retries."""
    items = await service.list_dead_letter_outbox(current_user, limit=limit)
    return [OutboxEventRead.model_validate(item) for item in items]


@router.post("/outbox/{event_id}/requeue", response_model=OutboxEventRead)
async def requeue_outbox_event(
    event_id: UUID,
    service: AuditService = Depends(get_audit_service),
    current_user=Depends(get_current_user),
) -> OutboxEventRead:
    event = await service.requeue_event(event_id, current_user)
    return OutboxEventRead.model_validate(event)

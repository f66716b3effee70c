"""Statements API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.core.enums import RoleEnum
from app.modules.identity.service import require_roles
from app.modules.statements.schemas import (
    EmailDispatchResult,
    InvoiceReminderRequest,
    MonthlyStatementRequest,
)
from app.modules.statements.service import StatementsService, get_statements_service

router = APIRouter(prefix="/statements", tags=["statements"])


@router.post("/monthly", response_model=EmailDispatchResult)
async def send_monthly_statement(
    payload: MonthlyStatementRequest,
    _current_user=Depends(require_roles(RoleEnum.ADMIN)),
    service: StatementsService = Depends(get_statements_service),
) -> EmailDispatchResult:
    """Email a monthly statement to a billing contact."""
    return await service.send_monthly_statement(payload)


@router.post("/reminders", response_model=EmailDispatchResult)
async def send_invoice_reminder(
    payload: InvoiceReminderRequest,
    _current_user=Depends(require_roles(RoleEnum.ADMIN)),
    service: StatementsService = Depends(get_statements_service),
) -> EmailDispatchResult:
    return await service.send_invoice_reminder(payload)

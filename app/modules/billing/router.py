"""Billing API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends

from app.modules.billing.schemas import GuestBookingRead, TransactionConfirmationUpdate, TransactionRead
from app.modules.billing.service import BillingService, get_billing_service
from app.modules.identity.service import get_current_user
from app.shared.pagination import Page, build_page, get_pagination_params

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/transactions", response_model=Page[TransactionRead])
async def list_transactions(
    pagination=Depends(get_pagination_params),
    service: BillingService = Depends(get_billing_service),
    current_user=Depends(get_current_user),
) -> Page[TransactionRead]:
    """List ledger entries visible to the current user."""
    items, total = await service.list_transactions(current_user, pagination.limit, pagination.offset)
    serialized = [TransactionRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)


@router.patch("/transactions/{transaction_id}/confirmation", response_model=TransactionRead)
async def update_transaction_confirmation(
    transaction_id: UUID,
    payload: TransactionConfirmationUpdate,
    service: BillingService = Depends(get_billing_service),
    current_user=Depends(get_current_user),
) -> TransactionRead:
    """Confirm or cancel a ledger entry."""
    transaction = await service.update_confirmation_status(
        transaction_id,
        payload.confirmation_status,
        current_user,
    )
    return TransactionRead.model_validate(transaction)


@router.get("/guest-bookings", response_model=Page[GuestBookingRead])
async def list_guest_bookings(
    pagination=Depends(get_pagination_params),
    service: BillingService = Depends(get_billing_service),
    current_user=Depends(get_current_user),
) -> Page[GuestBookingRead]:
    items, total = await service.list_guest_bookings(current_user, pagination.limit, pagination.offset)
    serialized = [GuestBookingRead.model_validate(item) for item in items]
    return build_page(serialized, total, pagination)

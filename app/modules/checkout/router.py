"""Checkout API router."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Header, Request, status

from app.core.config import get_settings
from app.core.enums import RoleEnum
from app.modules.checkout.schemas import (
    CheckoutDraftRead,
    CheckoutSessionCreate,
    CheckoutSessionRead,
    FinalizeRequest,
    FinalizeResponse,
    RefundRequest,
    RefundResponse,
    StripeConfigRead,
    WebhookAck,
)
from app.modules.checkout.service import CheckoutService, get_checkout_service, resolve_base_url
from app.modules.identity.service import require_roles

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("/sessions", response_model=CheckoutSessionRead, status_code=status.HTTP_201_CREATED)
async def create_checkout_session(
    payload: CheckoutSessionCreate,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutSessionRead:
    """Open a hosted checkout for a class, a coach slot or a guest purchase."""
    return await service.create_checkout_session(
        payload,
        base_url=resolve_base_url(request, get_settings()),
    )


@router.post("/finalize", response_model=FinalizeResponse)
async def finalize_checkout(
    payload: FinalizeRequest,
    service: CheckoutService = Depends(get_checkout_service),
) -> FinalizeResponse:
    return await service.finalize(payload.session_id)


@router.post("/webhook", response_model=WebhookAck)
async def stripe_webhook(
    request: Request,
    stripe_signature: str | None = Header(default=None, alias="Stripe-Signature"),
    service: CheckoutService = Depends(get_checkout_service),
) -> WebhookAck:
    """Receive Stripe events; the raw body is needed for signature checks."""
    payload = await request.body()
    return await service.handle_webhook(payload, stripe_signature)


@router.post("/refunds", response_model=RefundResponse)
async def refund_checkout(
    payload: RefundRequest,
    service: CheckoutService = Depends(get_checkout_service),
    current_user=Depends(require_roles(RoleEnum.ADMIN)),
) -> RefundResponse:
    return await service.refund(payload.session_id, current_user)


@router.get("/config", response_model=StripeConfigRead)
async def get_stripe_config(
    service: CheckoutService = Depends(get_checkout_service),
) -> StripeConfigRead:
    return service.get_config()


@router.get("/drafts/{draft_id}", response_model=CheckoutDraftRead)
async def get_checkout_draft(
    draft_id: UUID,
    service: CheckoutService = Depends(get_checkout_service),
) -> CheckoutDraftRead:
    draft = await service.get_draft(draft_id)
    return CheckoutDraftRead.model_validate(draft)

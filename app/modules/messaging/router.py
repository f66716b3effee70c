"""Messaging API router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request
from fastapi.responses import PlainTextResponse

from app.core.enums import RoleEnum
from app.modules.identity.service import require_roles
from app.modules.messaging.schemas import SendMessageRequest, SendMessageResponse, WhatsAppWebhookAck
from app.modules.messaging.service import MessagingService, get_messaging_service

router = APIRouter(prefix="/messaging", tags=["messaging"])


@router.get("/whatsapp/webhook", response_class=PlainTextResponse)
async def verify_whatsapp_webhook(
    hub_mode: str | None = Query(default=None, alias="hub.mode"),
    hub_verify_token: str | None = Query(default=None, alias="hub.verify_token"),
    hub_challenge: str | None = Query(default=None, alias="hub.challenge"),
    service: MessagingService = Depends(get_messaging_service),
) -> PlainTextResponse:
    """Meta subscription handshake."""
    challenge = service.verify_subscription(hub_mode, hub_verify_token, hub_challenge)
    return PlainTextResponse(challenge)


@router.post("/whatsapp/webhook", response_model=WhatsAppWebhookAck)
async def receive_whatsapp_webhook(
    request: Request,
    signature: str | None = Header(default=None, alias="X-Hub-Signature-256"),
    service: MessagingService = Depends(get_messaging_service),
) -> WhatsAppWebhookAck:
    """Inbound messages; the raw body is verified before it is parsed."""
    raw_body = await request.body()
    return await service.handle_webhook(raw_body, signature)


@router.post("/send", response_model=SendMessageResponse)
async def send_message(
    payload: SendMessageRequest,
    service: MessagingService = Depends(get_messaging_service),
    _current_user=Depends(require_roles(RoleEnum.COACH, RoleEnum.ADMIN)),
) -> SendMessageResponse:
    return await service.send_message(payload.to, payload.message)

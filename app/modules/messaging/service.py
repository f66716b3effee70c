"""WhatsApp webhook handling and outbound messages."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db_session
from app.core.metrics import record_webhook_event
from app.core.security import compute_hmac_sha256, constant_time_compare
from app.modules.coaches.models import CoachProfile
from app.modules.coaches.repository import CoachesRepository
from app.modules.messaging.auto_reply import build_booking_link, is_availability_question, render_auto_reply
from app.modules.messaging.client import WhatsAppClient, build_whatsapp_client
from app.modules.messaging.phone import normalize_phone_number, phone_numbers_match
from app.modules.messaging.schemas import SendMessageResponse, WhatsAppWebhookAck
from app.shared.exceptions import (
    AppException,
    SignatureVerificationException,
    UnauthorizedException,
    ValidationException,
)

logger = logging.getLogger(__name__)

SIGNATURE_PREFIX = "sha256="


@dataclass(frozen=True, slots=True)
class InboundMessage:
    """First message of a WhatsApp webhook delivery."""

    sender: str
    recipient: str | None
    phone_number_id: str | None
    message_id: str | None
    message_type: str
    text: str | None


def extract_inbound_message(payload: dict[str, Any]) -> InboundMessage | None:
    """Pull ``entry[0].changes[0].value.messages[0]``; None for status-only deliveries."""
    try:
        value = payload["entry"][0]["changes"][0]["value"]
    except (KeyError, IndexError, TypeError):
        return None
    messages = value.get("messages") or []
    if not messages:
        return None

    message = messages[0]
    metadata = value.get("metadata") or {}
    return InboundMessage(
        sender=message.get("from") or "",
        recipient=metadata.get("display_phone_number"),
        phone_number_id=metadata.get("phone_number_id"),
        message_id=message.get("id"),
        message_type=message.get("type") or "",
        text=(message.get("text") or {}).get("body"),
    )


class MessagingService:
    """Auto-responder for coach availability questions and staff messaging."""

    def __init__(
        self,
        coaches_repository: CoachesRepository,
        whatsapp_client: WhatsAppClient,
        settings: Settings,
    ) -> None:
        self.coaches_repository = coaches_repository
        self.whatsapp_client = whatsapp_client
        self.settings = settings

    def verify_subscription(self, mode: str | None, token: str | None, challenge: str | None) -> str:
        """Answer Meta's subscription handshake."""
        expected = self.settings.meta_webhook_verify_token
        if mode == "subscribe" and challenge is not None and constant_time_compare(token or "", expected or ""):
            return challenge
        raise UnauthorizedException("Webhook verification failed")

    def verify_signature(self, raw_body: bytes, signature_header: str | None) -> None:
        """Check ``X-Hub-Signature-256`` against the raw request body."""
        if not self.settings.meta_app_secret:
            raise SignatureVerificationException("Webhook signing secret is not configured")
        if not signature_header or not signature_header.startswith(SIGNATURE_PREFIX):
            raise SignatureVerificationException("Missing webhook signature")

        expected = compute_hmac_sha256(self.settings.meta_app_secret, raw_body)
        if not constant_time_compare(signature_header[len(SIGNATURE_PREFIX):], expected):
            raise SignatureVerificationException("Invalid webhook signature")

    async def find_coach_for_number(self, recipient: str | None) -> CoachProfile | None:
        """Coach owning ``recipient``: an exact match first, then a last-ten-digit match."""
        normalized = normalize_phone_number(recipient)
        if normalized is None:
            return None

        coaches = await self.coaches_repository.list_profiles_with_mobile_number()
        for coach in coaches:
            if normalize_phone_number(coach.mobile_number) == normalized:
                return coach

        candidates = [coach for coach in coaches if phone_numbers_match(coach.mobile_number, normalized)]
        if len(candidates) > 1:
            logger.warning(
                "Number %s matches %d coaches by suffix; using %s",
                normalized,
                len(candidates),
                candidates[0].id,
            )
        return candidates[0] if candidates else None

    def build_reply(self, coach: CoachProfile | None) -> str:
        if coach is None:
            return render_auto_reply(build_booking_link(self.settings.site_url))
        return render_auto_reply(
            build_booking_link(self.settings.site_url, coach.id),
            coach_name=coach.display_name,
            custom_message=coach.whatsapp_auto_reply_message,
        )

    async def handle_webhook(self, raw_body: bytes, signature_header: str | None) -> WhatsAppWebhookAck:
        try:
            self.verify_signature(raw_body, signature_header)
        except SignatureVerificationException:
            record_webhook_event("whatsapp", "rejected")
            raise

        try:
            payload = json.loads(raw_body)
        except ValueError as exc:
            raise ValidationException("Webhook body is not valid JSON") from exc

        message = extract_inbound_message(payload) if isinstance(payload, dict) else None
        if message is None or message.message_type != "text" or not message.text:
            record_webhook_event("whatsapp", "ignored")
            return WhatsAppWebhookAck(replied=False)

        if not is_availability_question(message.text):
            record_webhook_event("whatsapp", "ignored")
            return WhatsAppWebhookAck(replied=False)

        coach = await self.find_coach_for_number(message.recipient)
        if coach is not None and not coach.whatsapp_auto_reply_enabled:
            logger.info("Auto-reply disabled for coach %s", coach.id)
            record_webhook_event("whatsapp", "ignored")
            return WhatsAppWebhookAck(replied=False)

        reply_to = normalize_phone_number(message.sender)
        if reply_to is None:
            logger.warning("Cannot reply to unparsable sender number %r", message.sender)
            record_webhook_event("whatsapp", "ignored")
            return WhatsAppWebhookAck(replied=False)

        try:
            await self.whatsapp_client.send_text(
                reply_to,
                self.build_reply(coach),
                phone_number_id=message.phone_number_id,
            )
        except AppException as exc:
            # Meta retries non-2xx deliveries, so send failures are acknowledged.
            logger.warning("Auto-reply to %s failed: %s", reply_to, exc.message)
            record_webhook_event("whatsapp", "reply_failed")
            return WhatsAppWebhookAck(replied=False)

        record_webhook_event("whatsapp", "replied")
        return WhatsAppWebhookAck(replied=True)

    async def send_message(self, to: str, message: str) -> SendMessageResponse:
        normalized = normalize_phone_number(to)
        if normalized is None:
            raise ValidationException("Invalid phone number")
        message_id = await self.whatsapp_client.send_text(normalized, message)
        return SendMessageResponse(to=normalized, message_id=message_id)


async def get_messaging_service(session: AsyncSession = Depends(get_db_session)) -> MessagingService:
    """Dependency provider for messaging service."""
    settings = get_settings()
    return MessagingService(
        CoachesRepository(session),
        build_whatsapp_client(settings),
        settings,
    )

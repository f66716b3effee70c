"""WhatsApp Cloud API (Meta Graph) client."""

from __future__ import annotations

import logging

import httpx

from app.core.config import Settings, get_settings
from app.shared.exceptions import ConfigurationException, UpstreamServiceException

logger = logging.getLogger(__name__)


class WhatsAppClient:
    """Send text messages from the gym's WhatsApp business number."""

    def __init__(
        self,
        *,
        access_token: str | None,
        phone_number_id: str | None,
        api_base: str = "https://graph.facebook.com",
        api_version: str = "v21.0",
        timeout_seconds: float = 10.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.access_token = access_token
        self.phone_number_id = phone_number_id
        self.api_base = api_base.rstrip("/")
        self.api_version = api_version
        self.timeout_seconds = timeout_seconds
        self.http_client = http_client

    @property
    def configured(self) -> bool:
        return bool(self.access_token and self.phone_number_id)

    def messages_url(self, phone_number_id: str | None = None) -> str:
        return f"{self.api_base}/{self.api_version}/{phone_number_id or self.phone_number_id}/messages"

    async def send_text(self, to: str, body: str, *, phone_number_id: str | None = None) -> str | None:
        """Send ``body`` to the E.164 number ``to``; returns the provider message id.

        ``phone_number_id`` lets a reply leave from the number that received
        the inbound message.
        """
        if not self.access_token or not (phone_number_id or self.phone_number_id):
            raise ConfigurationException("WhatsApp credentials are not configured")

        payload = {
            "messaging_product": "whatsapp",
            "to": to.lstrip("+"),
            "type": "text",
            "text": {"body": body},
        }
        client = self.http_client or httpx.AsyncClient()
        close_client = self.http_client is None
        try:
            response = await client.post(
                self.messages_url(phone_number_id),
                json=payload,
                headers={"Authorization": f"Bearer {self.access_token}"},
                timeout=self.timeout_seconds,
            )
        except httpx.HTTPError as exc:
            logger.warning("WhatsApp request failed: %s", type(exc).__name__)
            raise UpstreamServiceException("Messaging provider is unreachable") from exc
        finally:
            if close_client:
                await client.aclose()

        if response.status_code >= 400:
            logger.warning("WhatsApp send rejected with status %s: %s", response.status_code, response.text[:500])
            raise UpstreamServiceException(f"Messaging provider returned {response.status_code}")

        try:
            messages = response.json().get("messages") or []
        except ValueError:
            logger.warning("WhatsApp response was not JSON")
            return None
        return messages[0].get("id") if messages else None


def build_whatsapp_client(settings: Settings | None = None) -> WhatsAppClient:
    settings = settings or get_settings()
    return WhatsAppClient(
        access_token=settings.meta_access_token,
        phone_number_id=settings.whatsapp_phone_number_id,
        api_base=settings.meta_graph_api_base,
        api_version=settings.meta_api_version,
        timeout_seconds=settings.messaging_timeout_seconds,
    )

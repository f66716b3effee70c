"""Messaging schemas."""

from __future__ import annotations

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    to: str = Field(min_length=3, max_length=32)
    message: str = Field(min_length=1, max_length=4096)


class SendMessageResponse(BaseModel):
    to: str
    message_id: str | None


class WhatsAppWebhookAck(BaseModel):
    """Acknowledgement returned to Meta for every verified delivery."""

    status: str = "ok"
    replied: bool = False

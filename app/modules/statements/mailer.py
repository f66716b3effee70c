"""SMTP delivery through FastAPI-Mail."""

from __future__ import annotations

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from app.core.config import Settings
from app.shared.exceptions import ConfigurationException


def build_connection_config(settings: Settings) -> ConnectionConfig:
    if not settings.mail_configured:
        raise ConfigurationException("Mail server is not configured")
    return ConnectionConfig(
        MAIL_USERNAME=settings.mail_username or "",
        MAIL_PASSWORD=settings.mail_password or "",
        MAIL_FROM=settings.mail_from,
        MAIL_FROM_NAME=settings.mail_from_name,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=settings.mail_ssl_tls,
        USE_CREDENTIALS=bool(settings.mail_username),
        VALIDATE_CERTS=True,
    )


class EmailSender:
    """Send one HTML email per call."""

    def __init__(self, config: ConnectionConfig) -> None:
        self.mail = FastMail(config)

    async def send_html(self, to: str, subject: str, html: str) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=[to],
            body=html,
            subtype=MessageType.html,
        )
        await self.mail.send_message(message)

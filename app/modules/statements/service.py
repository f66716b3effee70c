"""Monthly statements and invoice reminders."""

from __future__ import annotations

import logging

from fastapi_mail.errors import ConnectionErrors

from app.core.config import get_settings
from app.modules.statements.mailer import EmailSender, build_connection_config
from app.modules.statements.schemas import (
    EmailDispatchResult,
    InvoiceReminderRequest,
    MonthlyStatementRequest,
)
from app.modules.statements.templates import (
    reminder_subject,
    render_invoice_reminder,
    render_monthly_statement,
    statement_subject,
)

logger = logging.getLogger(__name__)


class StatementsService:
    """Render billing emails and hand them to the mail sender."""

    def __init__(self, sender: EmailSender) -> None:
        self.sender = sender

    async def _dispatch(self, to: str, subject: str, html: str) -> EmailDispatchResult:
        try:
            await self.sender.send_html(to, subject, html)
        except (ConnectionErrors, OSError) as exc:
            logger.warning("Email %r to %s failed: %s", subject, to, exc)
            return EmailDispatchResult(success=False, error=str(exc) or type(exc).__name__)
        logger.info("Email %r sent to %s", subject, to)
        return EmailDispatchResult(success=True)

    async def send_monthly_statement(self, data: MonthlyStatementRequest) -> EmailDispatchResult:
        return await self._dispatch(
            str(data.contact_email),
            statement_subject(data),
            render_monthly_statement(data),
        )

    async def send_invoice_reminder(self, data: InvoiceReminderRequest) -> EmailDispatchResult:
        return await self._dispatch(
            str(data.contact_email),
            reminder_subject(data),
            render_invoice_reminder(data),
        )


async def get_statements_service() -> StatementsService:
    """Dependency provider; fails with a configuration error when SMTP is unset."""
    return StatementsService(EmailSender(build_connection_config(get_settings())))

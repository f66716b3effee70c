"""HTML bodies for billing emails."""

from __future__ import annotations

from decimal import Decimal
from html import escape

from app.modules.statements.schemas import InvoiceReminderRequest, MonthlyStatementRequest

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { background: #dc2626; color: white; padding: 20px; text-align: center; }
    .content { background: #f9fafb; padding: 20px; }
    .total { font-size: 24px; font-weight: bold; color: #dc2626; margin-top: 20px; }
    table { width: 100%; border-collapse: collapse; margin-top: 20px; }
    th, td { padding: 10px; text-align: left; border-bottom: 1px solid #ddd; }
    th { background: #e5e7eb; }
"""


def _money(currency: str, amount: Decimal) -> str:
    return f"{escape(currency)} {Decimal(amount):.2f}"


def _page(title: str, content: str) -> str:
    return (
        "<!DOCTYPE html>\n"
        f"<html>\n<head>\n<style>{_STYLE}</style>\n</head>\n<body>\n"
        '<div class="container">\n'
        '<div class="header">\n<h1>Fleetwood Boxing Gym</h1>\n'
        f"<h2>{title}</h2>\n</div>\n"
        f'<div class="content">\n{content}</div>\n'
        "</div>\n</body>\n</html>\n"
    )


def statement_subject(data: MonthlyStatementRequest) -> str:
    return f"Monthly Statement - {data.statement_period_start} to {data.statement_period_end}"


def reminder_subject(data: InvoiceReminderRequest) -> str:
    return f"Invoice Reminder - Payment Due {data.due_date}"


def render_monthly_statement(data: MonthlyStatementRequest) -> str:
    rows = "".join(
        "<tr>"
        f"<td>{escape(item.description)}</td>"
        f"<td>{item.service_date.isoformat() if item.service_date else 'N/A'}</td>"
        f"<td>{_money(data.currency, item.amount)}</td>"
        "</tr>\n"
        for item in data.line_items
    )
    content = (
        f"<p>Dear {escape(data.contact_name)},</p>\n"
        "<p>Please find your monthly statement for the period "
        f"{data.statement_period_start} to {data.statement_period_end}.</p>\n"
        "<table>\n<thead>\n<tr><th>Description</th><th>Date</th><th>Amount</th></tr>\n</thead>\n"
        f"<tbody>\n{rows}</tbody>\n</table>\n"
        f'<div class="total">Total: {_money(data.currency, data.total_amount)}</div>\n'
    )
    if data.stripe_invoice_id:
        content += f"<p>Invoice reference: {escape(data.stripe_invoice_id)}</p>\n"
    content += "<p>Thank you for your business!</p>\n"
    return _page("Monthly Statement", content)


def render_invoice_reminder(data: InvoiceReminderRequest) -> str:
    content = (
        f"<p>Dear {escape(data.contact_name)},</p>\n"
        "<p>This is a friendly reminder that a payment of "
        f"<strong>{_money(data.currency, data.amount_due)}</strong> is due on {data.due_date}.</p>\n"
    )
    if data.invoice_id:
        content += f"<p>Invoice reference: {escape(data.invoice_id)}</p>\n"
    content += "<p>If you have already paid, please ignore this message. Thank you!</p>\n"
    return _page("Invoice Reminder", content)

"""Statement and reminder schemas."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, EmailStr, Field


class StatementLineItem(BaseModel):
    description: str = Field(min_length=1, max_length=255)
    amount: Decimal = Field(max_digits=10, decimal_places=2)
    service_type: str | None = Field(default=None, max_length=64)
    service_date: date | None = None


class MonthlyStatementRequest(BaseModel):
    """Pre-computed statement for one billing contact."""

    contact_email: EmailStr
    contact_name: str = Field(min_length=1, max_length=128)
    statement_period_start: date
    statement_period_end: date
    total_amount: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="GBP", min_length=3, max_length=3)
    line_items: list[StatementLineItem] = Field(default_factory=list)
    stripe_invoice_id: str | None = Field(default=None, max_length=255)


class InvoiceReminderRequest(BaseModel):
    contact_email: EmailStr
    contact_name: str = Field(min_length=1, max_length=128)
    amount_due: Decimal = Field(max_digits=10, decimal_places=2)
    currency: str = Field(default="GBP", min_length=3, max_length=3)
    due_date: date
    invoice_id: str | None = Field(default=None, max_length=255)


class EmailDispatchResult(BaseModel):
    success: bool
    error: str | None = None

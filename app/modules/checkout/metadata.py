"""Checkout-session metadata: everything reconciliation needs, as strings.

Reconciliation reads nothing but this metadata and the session id, so the
keys below are the contract between initiation and completion.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from app.core.enums import (
    BillingFrequencyEnum,
    CheckoutFlowEnum,
    PaymentMethodEnum,
    SlotTypeEnum,
)

METADATA_VALUE_LIMIT = 500
GUEST_MARKER = "true"

METADATA_KEYS = (
    "flow",
    "billing_mode",
    "billing_frequency",
    "price",
    "title",
    "class_id",
    "slot_id",
    "slot_type",
    "coach_id",
    "member_id",
    "participant_id",
    "participant_name",
    "booking_id",
    "session_start",
    "draft_id",
    "guest_booking",
    "guest_participant_name",
    "guest_participant_dob",
    "guest_contact_name",
    "guest_contact_email",
    "guest_contact_phone",
)


def _to_metadata_value(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        text = value.isoformat()
    else:
        text = str(value)
    if not text:
        return None
    return text[:METADATA_VALUE_LIMIT]


def build_metadata(**values: Any) -> dict[str, str]:
    """Stringify known keys, dropping empty ones."""
    unknown = set(values) - set(METADATA_KEYS)
    if unknown:
        raise KeyError(f"Unknown checkout metadata keys: {sorted(unknown)}")

    metadata: dict[str, str] = {}
    for key in METADATA_KEYS:
        text = _to_metadata_value(values.get(key))
        if text is not None:
            metadata[key] = text
    return metadata


def billing_frequency_for(mode: PaymentMethodEnum) -> BillingFrequencyEnum | None:
    if mode == PaymentMethodEnum.WEEKLY:
        return BillingFrequencyEnum.WEEKLY
    if mode == PaymentMethodEnum.MONTHLY:
        return BillingFrequencyEnum.MONTHLY
    return None


def detect_flow(metadata: dict[str, Any]) -> CheckoutFlowEnum:
    """Explicit flow tag, else slot id, else guest marker, else a class booking."""
    flow = (metadata.get("flow") or "").strip().upper()
    if flow in CheckoutFlowEnum.__members__:
        return CheckoutFlowEnum(flow)
    if metadata.get("slot_id"):
        return CheckoutFlowEnum.COACH_SLOT
    if (metadata.get("guest_booking") or "").lower() == GUEST_MARKER:
        return CheckoutFlowEnum.GUEST
    return CheckoutFlowEnum.CLASS


def _uuid(value: str | None) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def _datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _date(value: str | None) -> date | None:
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def _enum(enum_cls, value: str | None, default=None):
    if not value:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass(frozen=True, slots=True)
class CheckoutMetadata:
    """Typed view of session metadata; unparsable values read as None."""

    flow: CheckoutFlowEnum
    billing_mode: PaymentMethodEnum
    billing_frequency: BillingFrequencyEnum | None
    price: Decimal | None
    title: str | None
    class_id: UUID | None
    slot_id: UUID | None
    slot_type: SlotTypeEnum | None
    coach_id: UUID | None
    member_id: UUID | None
    participant_id: UUID | None
    participant_name: str | None
    booking_id: UUID | None
    session_start: datetime | None
    draft_id: UUID | None
    is_guest: bool
    guest_participant_name: str | None
    guest_participant_dob: date | None
    guest_contact_name: str | None
    guest_contact_email: str | None
    guest_contact_phone: str | None

    @classmethod
    def parse(cls, metadata: dict[str, Any] | None) -> "CheckoutMetadata":
        raw = {key: (str(value) if value is not None else None) for key, value in (metadata or {}).items()}
        billing_mode = _enum(PaymentMethodEnum, raw.get("billing_mode"), PaymentMethodEnum.ONE_OFF)
        try:
            price = Decimal(raw["price"]) if raw.get("price") else None
        except InvalidOperation:
            price = None

        return cls(
            flow=detect_flow(raw),
            billing_mode=billing_mode,
            billing_frequency=_enum(BillingFrequencyEnum, raw.get("billing_frequency"))
            or billing_frequency_for(billing_mode),
            price=price,
            title=raw.get("title") or None,
            class_id=_uuid(raw.get("class_id")),
            slot_id=_uuid(raw.get("slot_id")),
            slot_type=_enum(SlotTypeEnum, raw.get("slot_type")),
            coach_id=_uuid(raw.get("coach_id")),
            member_id=_uuid(raw.get("member_id")),
            participant_id=_uuid(raw.get("participant_id")),
            participant_name=raw.get("participant_name") or None,
            booking_id=_uuid(raw.get("booking_id")),
            session_start=_datetime(raw.get("session_start")),
            draft_id=_uuid(raw.get("draft_id")),
            is_guest=(raw.get("guest_booking") or "").lower() == GUEST_MARKER,
            guest_participant_name=raw.get("guest_participant_name") or None,
            guest_participant_dob=_date(raw.get("guest_participant_dob")),
            guest_contact_name=raw.get("guest_contact_name") or None,
            guest_contact_email=raw.get("guest_contact_email") or None,
            guest_contact_phone=raw.get("guest_contact_phone") or None,
        )

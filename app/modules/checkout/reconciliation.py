"""Turn a completed checkout session into bookings and a ledger entry.

Every write is keyed by the checkout session id, so running the same session
through ``CheckoutReconciler.reconcile`` again (finalize racing the webhook, a
provider retry, the retry worker) converges on the same rows.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import date
from typing import Any
from uuid import NAMESPACE_URL, UUID, uuid5

from sqlalchemy.exc import SQLAlchemyError

from app.core.enums import (
    CheckoutFlowEnum,
    ConfirmationStatusEnum,
    GuestServiceTypeEnum,
    SlotTypeEnum,
    TransactionSourceEnum,
    TransactionStatusEnum,
)
from app.core.metrics import record_reconciliation
from app.modules.audit.repository import AuditRepository
from app.modules.billing.repository import BillingRepository
from app.modules.booking.repository import BookingRepository
from app.modules.checkout.metadata import CheckoutMetadata
from app.modules.checkout.repository import CheckoutRepository
from app.modules.checkout.stripe_client import StripeClient, expandable_id
from app.modules.scheduling.repository import SchedulingRepository
from app.shared.exceptions import ConfigurationException, UpstreamServiceException
from app.shared.utils import date_from_timestamp, from_minor_units, utc_now

logger = logging.getLogger(__name__)

CHECKOUT_NAMESPACE = uuid5(NAMESPACE_URL, "fleetwood-boxing:checkout")

EVENT_RECONCILIATION_FAILED = "checkout.reconciliation.failed"
EVENT_CHECKOUT_COMPLETED = "checkout.completed"

SessionScope = Callable[[], AbstractAsyncContextManager[Any]]


def booking_id_for_session(stripe_session_id: str) -> UUID:
    return uuid5(CHECKOUT_NAMESPACE, f"booking:{stripe_session_id}")


def appointment_id_for_session(stripe_session_id: str) -> UUID:
    return uuid5(CHECKOUT_NAMESPACE, f"appointment:{stripe_session_id}")


@dataclass(slots=True)
class SubscriptionDetails:
    stripe_customer_id: str | None = None
    stripe_subscription_id: str | None = None
    next_billing_date: date | None = None


@dataclass(slots=True)
class ReconciliationResult:
    session_id: str
    flow: CheckoutFlowEnum
    transaction_id: UUID | None = None
    created: bool = False
    completed_steps: list[str] = field(default_factory=list)
    failed_steps: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed_steps


class CheckoutReconciler:
    """Apply a completed checkout session to the booking tables and the ledger.

    Each step runs inside its own savepoint obtained from ``session_scope``.
    A step that fails with a database error is rolled back alone, logged, and
    recorded as a ``checkout.reconciliation.failed`` outbox event for the
    retry worker; the remaining steps still run.
    """

    def __init__(
        self,
        stripe_client: StripeClient,
        booking_repository: BookingRepository,
        scheduling_repository: SchedulingRepository,
        billing_repository: BillingRepository,
        checkout_repository: CheckoutRepository,
        audit_repository: AuditRepository,
        session_scope: SessionScope,
        *,
        default_currency: str = "gbp",
    ) -> None:
        self.stripe_client = stripe_client
        self.booking_repository = booking_repository
        self.scheduling_repository = scheduling_repository
        self.billing_repository = billing_repository
        self.checkout_repository = checkout_repository
        self.audit_repository = audit_repository
        self.session_scope = session_scope
        self.default_currency = default_currency

    async def reconcile(
        self,
        session: dict[str, Any],
        *,
        source: str,
        record_failures: bool = True,
    ) -> ReconciliationResult:
        """Reconcile one completed session.

        ``record_failures=False`` is used by the retry worker, which tracks
        failures on the event it is replaying instead of writing a new one.
        """
        session_id = session["id"]
        metadata = CheckoutMetadata.parse(session.get("metadata"))
        result = ReconciliationResult(session_id=session_id, flow=metadata.flow)
        subscription = await self.fetch_subscription_details(session)

        booking_id: UUID | None = None
        guest_booking_id: UUID | None = None

        if metadata.flow == CheckoutFlowEnum.CLASS:
            booking_id = metadata.booking_id or booking_id_for_session(session_id)
            await self._run_step(
                result,
                "booking",
                lambda: self._create_booking(session, metadata, booking_id, subscription, result),
            )
        elif metadata.flow == CheckoutFlowEnum.COACH_SLOT:
            await self._run_step(
                result,
                "appointment",
                lambda: self._create_appointment(session, metadata, result, primary=True),
            )
        else:
            guest_booking_id = await self._run_step(
                result,
                "guest_booking",
                lambda: self._create_guest_booking(session, metadata, subscription, result),
            )
            if metadata.slot_id is not None:
                await self._run_step(
                    result,
                    "appointment",
                    lambda: self._create_appointment(session, metadata, result, primary=False),
                )

        result.transaction_id = await self._run_step(
            result,
            "transaction",
            lambda: self.billing_repository.upsert_transaction(
                self.build_transaction_values(
                    session,
                    metadata,
                    subscription,
                    booking_id=booking_id,
                    guest_booking_id=guest_booking_id,
                ),
            ),
        )

        if metadata.draft_id is not None:
            await self._run_step(
                result,
                "draft",
                lambda: self.checkout_repository.mark_completed(metadata.draft_id, session_id, utc_now()),
            )

        if result.failed_steps:
            if record_failures:
                await self._record_failure(result, source)
            logger.warning(
                "Checkout %s reconciled from %s with failed steps: %s",
                session_id,
                source,
                ", ".join(result.failed_steps),
            )
        else:
            logger.info("Checkout %s reconciled from %s (flow=%s)", session_id, source, metadata.flow)

        record_reconciliation(str(metadata.flow), "ok" if result.succeeded else "partial")
        return result

    async def _run_step(
        self,
        result: ReconciliationResult,
        name: str,
        step: Callable[[], Awaitable[Any]],
    ) -> Any:
        try:
            async with self.session_scope():
                value = await step()
        except SQLAlchemyError:
            logger.exception("Reconciliation step %s failed for checkout %s", name, result.session_id)
            result.failed_steps.append(name)
            return None
        result.completed_steps.append(name)
        return value

    async def fetch_subscription_details(self, session: dict[str, Any]) -> SubscriptionDetails:
        """Customer, subscription id and next billing date of a subscription checkout.

        Provider failures are logged and leave the provider-derived fields empty.
        """
        details = SubscriptionDetails(stripe_customer_id=expandable_id(session.get("customer")))
        if session.get("mode") != "subscription":
            return details

        subscription_id = expandable_id(session.get("subscription"))
        if not subscription_id:
            return details
        details.stripe_subscription_id = subscription_id

        try:
            subscription = await self.stripe_client.retrieve_subscription(subscription_id)
        except (UpstreamServiceException, ConfigurationException) as exc:
            logger.warning("Could not load subscription %s: %s", subscription_id, exc.message)
            return details

        period_end = subscription.get("current_period_end")
        if period_end is None:
            items = (subscription.get("items") or {}).get("data") or []
            if items:
                period_end = items[0].get("current_period_end")
        details.next_billing_date = date_from_timestamp(period_end)
        details.stripe_customer_id = details.stripe_customer_id or expandable_id(subscription.get("customer"))
        return details

    async def _create_booking(
        self,
        session: dict[str, Any],
        metadata: CheckoutMetadata,
        booking_id: UUID,
        subscription: SubscriptionDetails,
        result: ReconciliationResult,
    ) -> None:
        created = await self.booking_repository.insert_booking_if_absent(
            booking_id=booking_id,
            member_id=metadata.member_id,
            participant_id=metadata.participant_id or metadata.member_id,
            participant_name=metadata.participant_name,
            class_id=metadata.class_id,
            stripe_session_id=session["id"],
            session_start=metadata.session_start,
            payment_method=metadata.billing_mode,
            billing_frequency=metadata.billing_frequency,
            stripe_customer_id=subscription.stripe_customer_id,
            stripe_subscription_id=subscription.stripe_subscription_id,
            next_billing_date=subscription.next_billing_date,
        )
        if created:
            result.created = True
            await self._emit_completed(session, metadata, booking_id=booking_id)

    async def _create_appointment(
        self,
        session: dict[str, Any],
        metadata: CheckoutMetadata,
        result: ReconciliationResult,
        *,
        primary: bool,
    ) -> None:
        participant_name = metadata.participant_name or metadata.guest_participant_name
        created = await self.scheduling_repository.insert_appointment_if_absent(
            appointment_id=appointment_id_for_session(session["id"]),
            slot_id=metadata.slot_id,
            member_id=metadata.member_id,
            participant_id=metadata.participant_id or metadata.member_id,
            participant_name=participant_name,
            stripe_session_id=session["id"],
        )
        if not created:
            existing = await self.scheduling_repository.get_active_appointment_for_slot(metadata.slot_id)
            if existing is not None and existing.stripe_session_id != session["id"]:
                logger.warning(
                    "Slot %s was already taken when checkout %s completed",
                    metadata.slot_id,
                    session["id"],
                )
        if created and primary:
            result.created = True
            await self._emit_completed(session, metadata)

    async def _create_guest_booking(
        self,
        session: dict[str, Any],
        metadata: CheckoutMetadata,
        subscription: SubscriptionDetails,
        result: ReconciliationResult,
    ) -> UUID:
        service_type = GuestServiceTypeEnum.PRIVATE if metadata.slot_id else GuestServiceTypeEnum.CLASS
        guest_booking_id, created = await self.billing_repository.insert_guest_booking_if_absent(
            {
                "service_type": service_type,
                "reference_id": metadata.slot_id or metadata.class_id,
                "title": metadata.title or "Guest booking",
                "session_date": metadata.session_start,
                "participant_name": metadata.guest_participant_name,
                "participant_dob": metadata.guest_participant_dob,
                "contact_name": metadata.guest_contact_name,
                "contact_email": metadata.guest_contact_email,
                "contact_phone": metadata.guest_contact_phone,
                "status": ConfirmationStatusEnum.PENDING,
                "stripe_session_id": session["id"],
                "payment_method": metadata.billing_mode,
                "billing_frequency": metadata.billing_frequency,
                "stripe_customer_id": subscription.stripe_customer_id,
                "stripe_subscription_id": subscription.stripe_subscription_id,
                "next_billing_date": subscription.next_billing_date,
            },
        )
        if created:
            result.created = True
            await self._emit_completed(session, metadata, guest_booking_id=guest_booking_id)
        return guest_booking_id

    def build_transaction_values(
        self,
        session: dict[str, Any],
        metadata: CheckoutMetadata,
        subscription: SubscriptionDetails,
        *,
        booking_id: UUID | None,
        guest_booking_id: UUID | None,
    ) -> dict[str, Any]:
        paid = session.get("payment_status") == "paid"
        return {
            "stripe_session_id": session["id"],
            "member_id": None if metadata.flow == CheckoutFlowEnum.GUEST else metadata.member_id,
            "coach_id": metadata.coach_id,
            "booking_id": booking_id,
            "slot_id": metadata.slot_id,
            "guest_booking_id": guest_booking_id,
            "amount": from_minor_units(session.get("amount_total")),
            "currency": (session.get("currency") or self.default_currency).upper(),
            "source": self.transaction_source(metadata),
            "description": metadata.title,
            "status": TransactionStatusEnum.PAID if paid else TransactionStatusEnum.PENDING,
            "confirmation_status": ConfirmationStatusEnum.PENDING,
            "payment_method": metadata.billing_mode,
            "billing_frequency": metadata.billing_frequency,
            "stripe_customer_id": subscription.stripe_customer_id,
            "stripe_subscription_id": subscription.stripe_subscription_id,
            "next_billing_date": subscription.next_billing_date,
            "settled_at": utc_now() if paid else None,
        }

    @staticmethod
    def transaction_source(metadata: CheckoutMetadata) -> TransactionSourceEnum:
        if metadata.flow == CheckoutFlowEnum.CLASS or metadata.slot_id is None:
            return TransactionSourceEnum.CLASS
        if metadata.slot_type == SlotTypeEnum.GROUP:
            return TransactionSourceEnum.GROUP_SESSION
        return TransactionSourceEnum.PRIVATE_SESSION

    async def _emit_completed(
        self,
        session: dict[str, Any],
        metadata: CheckoutMetadata,
        *,
        booking_id: UUID | None = None,
        guest_booking_id: UUID | None = None,
    ) -> None:
        # Written in the same savepoint as the row whose creation it announces.
        await self.audit_repository.create_outbox_event(
            aggregate_type="checkout_session",
            aggregate_id=session["id"],
            event_type=EVENT_CHECKOUT_COMPLETED,
            payload={
                "session_id": session["id"],
                "flow": str(metadata.flow),
                "coach_id": str(metadata.coach_id) if metadata.coach_id else None,
                "member_id": str(metadata.member_id) if metadata.member_id else None,
                "booking_id": str(booking_id) if booking_id else None,
                "guest_booking_id": str(guest_booking_id) if guest_booking_id else None,
                "title": metadata.title,
                "participant_name": metadata.participant_name or metadata.guest_participant_name,
                "session_start": metadata.session_start.isoformat() if metadata.session_start else None,
                "amount": str(from_minor_units(session.get("amount_total"))),
                "currency": (session.get("currency") or self.default_currency).upper(),
            },
        )

    async def _record_failure(self, result: ReconciliationResult, source: str) -> None:
        try:
            async with self.session_scope():
                await self.audit_repository.create_outbox_event(
                    aggregate_type="checkout_session",
                    aggregate_id=result.session_id,
                    event_type=EVENT_RECONCILIATION_FAILED,
                    payload={
                        "session_id": result.session_id,
                        "flow": str(result.flow),
                        "failed_steps": list(result.failed_steps),
                        "source": source,
                    },
                )
        except SQLAlchemyError:
            logger.exception("Could not record failed reconciliation of checkout %s", result.session_id)

"""Checkout business logic layer."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, get_settings
from app.core.database import get_db_session, savepoint_factory
from app.core.enums import CheckoutDraftStatusEnum, CheckoutFlowEnum, PaymentMethodEnum
from app.core.metrics import record_checkout_session, record_webhook_event
from app.modules.audit.repository import AuditRepository
from app.modules.billing.repository import BillingRepository
from app.modules.billing.service import BillingService
from app.modules.booking.repository import BookingRepository
from app.modules.checkout.metadata import GUEST_MARKER, billing_frequency_for, build_metadata
from app.modules.checkout.models import CheckoutDraft
from app.modules.checkout.reconciliation import CheckoutReconciler
from app.modules.checkout.repository import CheckoutRepository
from app.modules.checkout.schemas import (
    CheckoutSessionCreate,
    CheckoutSessionRead,
    FinalizeResponse,
    RefundResponse,
    StripeConfigRead,
    WebhookAck,
)
from app.modules.checkout.stripe_client import (
    StripeClient,
    build_stripe_client,
    expandable_id,
    invoice_payment_intent,
)
from app.modules.classes.repository import ClassesRepository
from app.modules.coaches.repository import CoachesRepository
from app.modules.family.repository import FamilyRepository
from app.modules.family.service import FamilyService, check_age_limits
from app.modules.identity.models import User
from app.modules.identity.repository import IdentityRepository
from app.modules.scheduling.repository import SchedulingRepository
from app.modules.scheduling.service import SchedulingService
from app.shared.exceptions import (
    ConfigurationException,
    ConflictException,
    NotFoundException,
    SignatureVerificationException,
    ValidationException,
)
from app.shared.utils import ensure_utc, to_minor_units, utc_now

logger = logging.getLogger(__name__)

RECONCILED_EVENT_TYPES = frozenset(
    {
        "checkout.session.completed",
        "checkout.session.async_payment_succeeded",
    },
)

# Stripe only accepts a session expiry between 30 minutes and 24 hours out.
MIN_SESSION_EXPIRY = timedelta(minutes=30)
MAX_SESSION_EXPIRY = timedelta(hours=24)

RECURRING_INTERVALS = {
    PaymentMethodEnum.WEEKLY: "week",
    PaymentMethodEnum.MONTHLY: "month",
}


def resolve_base_url(request: Request, settings: Settings) -> str:
    """Public origin used for the provider redirects."""
    if settings.frontend_url:
        return settings.frontend_url.rstrip("/")
    scheme = request.headers.get("x-forwarded-proto") or request.url.scheme
    host = request.headers.get("x-forwarded-host") or request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"


class CheckoutService:
    """Hosted checkout initiation, completion and refunds."""

    def __init__(
        self,
        stripe_client: StripeClient,
        reconciler: CheckoutReconciler,
        checkout_repository: CheckoutRepository,
        classes_repository: ClassesRepository,
        scheduling_service: SchedulingService,
        billing_service: BillingService,
        family_service: FamilyService,
        settings: Settings,
    ) -> None:
        self.stripe_client = stripe_client
        self.reconciler = reconciler
        self.checkout_repository = checkout_repository
        self.classes_repository = classes_repository
        self.scheduling_service = scheduling_service
        self.billing_service = billing_service
        self.family_service = family_service
        self.settings = settings

    def _validate_request(self, payload: CheckoutSessionCreate) -> None:
        if payload.price is None:
            raise ValidationException("Price is required")
        if payload.member_id is None and payload.guest_booking is None:
            raise ValidationException("Either member_id or guest_booking is required")
        if payload.class_id is None and payload.slot_id is None:
            raise ValidationException("Either class_id or slot_id is required")
        if payload.price < 0 or (payload.price == 0 and payload.billing_mode != PaymentMethodEnum.PER_SESSION):
            raise ValidationException("Price must be greater than zero")

        if payload.member_id is None:
            guest = payload.guest_booking
            missing = [
                name
                for name in ("participant_name", "contact_name", "contact_email")
                if not (getattr(guest, name) or "").strip()
            ]
            if missing:
                raise ValidationException(f"Guest booking is missing: {', '.join(missing)}")
            if "@" not in guest.contact_email:
                raise ValidationException("Guest contact email is invalid")

        if payload.success_path is not None:
            path = payload.success_path
            if not path.startswith("/") or path.startswith("//"):
                raise ValidationException("success_path must be a relative path")

    @staticmethod
    def _ensure_listed_price(payload: CheckoutSessionCreate, listed_price) -> None:
        """Charged amounts come from the catalogue; per-session checkouts charge nothing now."""
        if payload.billing_mode == PaymentMethodEnum.PER_SESSION or listed_price is None:
            return
        if payload.price != listed_price:
            raise ValidationException(f"Price does not match the listed price of {listed_price}")

    @staticmethod
    def _flow_for(payload: CheckoutSessionCreate) -> CheckoutFlowEnum:
        if payload.member_id is None:
            return CheckoutFlowEnum.GUEST
        if payload.slot_id is not None:
            return CheckoutFlowEnum.COACH_SLOT
        return CheckoutFlowEnum.CLASS

    async def _resolve_draft(self, draft_id: UUID | None, now: datetime) -> CheckoutDraft | None:
        if draft_id is None:
            return None
        draft = await self.checkout_repository.get_draft(draft_id)
        if draft is None:
            raise NotFoundException("Checkout draft not found")
        if draft.status == CheckoutDraftStatusEnum.COMPLETED:
            raise ConflictException("Checkout draft is already completed")
        if draft.status == CheckoutDraftStatusEnum.OPEN and ensure_utc(draft.expires_at) <= now:
            await self.checkout_repository.mark_expired(draft)
        if draft.status == CheckoutDraftStatusEnum.EXPIRED:
            return None
        return draft

    async def create_checkout_session(
        self,
        payload: CheckoutSessionCreate,
        *,
        base_url: str,
    ) -> CheckoutSessionRead:
        """Validate the booking intent and open a hosted checkout session.

        Nothing is sent to the provider until the request passed validation.
        Retrying with the ``draft_id`` of an open draft that already has a
        session returns that session.
        """
        self._validate_request(payload)
        now = utc_now()

        draft = await self._resolve_draft(payload.draft_id, now)
        if draft is not None and draft.stripe_session_id:
            return CheckoutSessionRead(
                id=draft.stripe_session_id,
                draft_id=draft.id,
                expires_at=draft.expires_at,
            )

        flow = self._flow_for(payload)
        guest = payload.guest_booking if flow == CheckoutFlowEnum.GUEST else None
        coach_id = payload.coach_id
        slot_type = payload.slot_type
        session_start = payload.session_start
        gym_class = None
        if payload.slot_id is not None:
            slot = await self.scheduling_service.get_open_slot(payload.slot_id)
            title = payload.slot_title or slot.title
            coach_id = slot.coach_id
            slot_type = slot.slot_type
            session_start = slot.start_at
            listed_price = slot.price
        else:
            gym_class = await self.classes_repository.get_class_by_id(payload.class_id)
            if gym_class is None:
                raise NotFoundException("Class not found")
            title = payload.class_name or gym_class.name
            coach_id = coach_id or gym_class.coach_id
            listed_price = gym_class.price
        self._ensure_listed_price(payload, listed_price)

        participant = None
        if payload.member_id is not None:
            participant = await self.family_service.resolve_participant(payload.member_id, payload.participant_id)
        if gym_class is not None:
            check_age_limits(
                participant.date_of_birth if participant else guest.participant_dob,
                gym_class.min_age,
                gym_class.max_age,
                (session_start or now).date(),
            )

        if draft is None:
            draft = await self.checkout_repository.create_draft(
                flow=flow,
                billing_mode=payload.billing_mode,
                payload=payload.model_dump(mode="json"),
                expires_at=now + timedelta(minutes=self.settings.checkout_draft_ttl_minutes),
                member_id=payload.member_id,
            )

        if participant is not None:
            participant_name = payload.participant_name or participant.full_name
        else:
            participant_name = payload.participant_name or guest.participant_name
        metadata = build_metadata(
            flow=flow,
            billing_mode=payload.billing_mode,
            billing_frequency=billing_frequency_for(payload.billing_mode),
            price=payload.price,
            title=title,
            class_id=payload.class_id,
            slot_id=payload.slot_id,
            slot_type=slot_type,
            coach_id=coach_id,
            member_id=payload.member_id,
            participant_id=participant.id if participant else None,
            participant_name=participant_name,
            booking_id=payload.booking_id,
            session_start=session_start,
            draft_id=draft.id,
            guest_booking=GUEST_MARKER if guest else None,
            guest_participant_name=guest.participant_name if guest else None,
            guest_participant_dob=guest.participant_dob if guest else None,
            guest_contact_name=guest.contact_name if guest else None,
            guest_contact_email=guest.contact_email if guest else None,
            guest_contact_phone=guest.contact_phone if guest else None,
        )
        params = self.build_session_params(
            billing_mode=payload.billing_mode,
            price=payload.price,
            title=title,
            metadata=metadata,
            base_url=base_url,
            success_path=payload.success_path or self.settings.checkout_success_path,
            customer_email=guest.contact_email if guest else None,
            expires_at=draft.expires_at,
            now=now,
        )
        session = await self.stripe_client.create_checkout_session(
            params,
            idempotency_key=f"checkout-draft:{draft.id}",
        )
        await self.checkout_repository.attach_session(draft, session["id"])
        record_checkout_session(str(payload.billing_mode))
        logger.info(
            "Checkout session %s created (flow=%s, billing_mode=%s, draft=%s)",
            session["id"],
            flow,
            payload.billing_mode,
            draft.id,
        )
        return CheckoutSessionRead(id=session["id"], draft_id=draft.id, expires_at=draft.expires_at)

    def build_session_params(
        self,
        *,
        billing_mode: PaymentMethodEnum,
        price,
        title: str,
        metadata: dict[str, str],
        base_url: str,
        success_path: str,
        customer_email: str | None,
        expires_at: datetime,
        now: datetime,
    ) -> dict[str, Any]:
        """Stripe ``checkout.Session.create`` arguments for one billing mode."""
        params: dict[str, Any] = {
            "payment_method_types": ["card"],
            "success_url": f"{base_url}{success_path}?stripe_success=true&session_id={{CHECKOUT_SESSION_ID}}",
            "cancel_url": base_url,
            "metadata": metadata,
            "client_reference_id": metadata.get("draft_id"),
        }
        remaining = ensure_utc(expires_at) - now
        if MIN_SESSION_EXPIRY <= remaining <= MAX_SESSION_EXPIRY:
            params["expires_at"] = int(ensure_utc(expires_at).timestamp())
        if customer_email:
            params["customer_email"] = customer_email

        price_data: dict[str, Any] = {
            "currency": self.settings.stripe_currency,
            "product_data": {
                "name": title,
                "description": self.settings.stripe_product_description,
            },
            "unit_amount": to_minor_units(price),
        }

        if billing_mode == PaymentMethodEnum.PER_SESSION:
            params["mode"] = "setup"
            params["setup_intent_data"] = {"metadata": metadata}
        elif billing_mode in RECURRING_INTERVALS:
            price_data["recurring"] = {"interval": RECURRING_INTERVALS[billing_mode]}
            params["mode"] = "subscription"
            params["line_items"] = [{"price_data": price_data, "quantity": 1}]
            params["subscription_data"] = {"metadata": metadata}
        else:
            params["mode"] = "payment"
            params["line_items"] = [{"price_data": price_data, "quantity": 1}]
            params["payment_intent_data"] = {"metadata": metadata}
        return params

    async def finalize(self, session_id: str) -> FinalizeResponse:
        """Reconcile a session the client came back from, when it is complete."""
        session = await self.stripe_client.retrieve_checkout_session(session_id)
        reconciled = False
        if session.get("status") == "complete":
            await self.reconciler.reconcile(session, source="finalize")
            reconciled = True
        return FinalizeResponse(
            id=session["id"],
            status=session.get("status"),
            payment_status=session.get("payment_status"),
            amount_total=session.get("amount_total"),
            currency=session.get("currency"),
            metadata=dict(session.get("metadata") or {}),
            reconciled=reconciled,
        )

    async def handle_webhook(self, payload: bytes, signature: str | None) -> WebhookAck:
        try:
            event = self.stripe_client.construct_webhook_event(payload, signature)
        except SignatureVerificationException:
            record_webhook_event("stripe", "rejected")
            raise

        event_type = event.get("type")
        if event_type not in RECONCILED_EVENT_TYPES:
            logger.debug("Ignoring Stripe event %s (%s)", event.get("id"), event_type)
            record_webhook_event("stripe", "ignored")
            return WebhookAck()

        session = dict(event["data"]["object"])
        await self.reconciler.reconcile(session, source="webhook")
        record_webhook_event("stripe", "reconciled")
        return WebhookAck()

    async def _payment_intent_for(self, session: dict[str, Any]) -> str | None:
        """Subscription checkouts are paid through their first invoice."""
        payment_intent = expandable_id(session.get("payment_intent"))
        if payment_intent:
            return payment_intent

        invoice_id = expandable_id(session.get("invoice"))
        subscription_id = expandable_id(session.get("subscription"))
        if invoice_id is None and subscription_id is not None:
            subscription = await self.stripe_client.retrieve_subscription(subscription_id)
            invoice_id = expandable_id(subscription.get("latest_invoice"))
        if invoice_id is None:
            return None

        invoice = await self.stripe_client.retrieve_invoice(invoice_id)
        payment_intent = invoice_payment_intent(invoice)
        if payment_intent is None and "payment_intent" not in invoice:
            invoice = await self.stripe_client.retrieve_invoice(invoice_id, expand=["payments"])
            payment_intent = invoice_payment_intent(invoice)
        return payment_intent

    async def refund(self, session_id: str, actor: User) -> RefundResponse:
        """Fully refund the payment behind a checkout session."""
        session = await self.stripe_client.retrieve_checkout_session(session_id)
        payment_intent = await self._payment_intent_for(session)
        if not payment_intent:
            raise ValidationException("Checkout session has no payment to refund")

        refund = await self.stripe_client.create_refund(
            payment_intent,
            idempotency_key=f"refund:{session_id}",
        )
        transaction = await self.billing_service.mark_refunded(session_id, refund["id"], actor)
        logger.info("Refund %s issued for checkout %s", refund["id"], session_id)
        return RefundResponse(
            refund_id=refund["id"],
            status=refund.get("status"),
            amount=refund.get("amount"),
            currency=refund.get("currency"),
            transaction_id=transaction.id if transaction is not None else None,
        )

    def get_config(self) -> StripeConfigRead:
        if not self.settings.stripe_publishable_key:
            raise ConfigurationException("Stripe publishable key is not configured")
        return StripeConfigRead(publishable_key=self.settings.stripe_publishable_key)

    async def get_draft(self, draft_id: UUID) -> CheckoutDraft:
        """Return a draft, expiring it on read when it is past its expiry."""
        draft = await self.checkout_repository.get_draft(draft_id)
        if draft is None:
            raise NotFoundException("Checkout draft not found")
        if draft.status == CheckoutDraftStatusEnum.OPEN and ensure_utc(draft.expires_at) <= utc_now():
            draft = await self.checkout_repository.mark_expired(draft)
        return draft


def build_reconciler(
    session: AsyncSession,
    stripe_client: StripeClient,
    settings: Settings,
) -> CheckoutReconciler:
    return CheckoutReconciler(
        stripe_client=stripe_client,
        booking_repository=BookingRepository(session),
        scheduling_repository=SchedulingRepository(session),
        billing_repository=BillingRepository(session),
        checkout_repository=CheckoutRepository(session),
        audit_repository=AuditRepository(session),
        session_scope=savepoint_factory(session),
        default_currency=settings.stripe_currency,
    )


async def get_checkout_service(session: AsyncSession = Depends(get_db_session)) -> CheckoutService:
    """Dependency provider for checkout service."""
    settings = get_settings()
    stripe_client = build_stripe_client(settings)
    audit_repository = AuditRepository(session)
    return CheckoutService(
        stripe_client=stripe_client,
        reconciler=build_reconciler(session, stripe_client, settings),
        checkout_repository=CheckoutRepository(session),
        classes_repository=ClassesRepository(session),
        scheduling_service=SchedulingService(
            SchedulingRepository(session),
            CoachesRepository(session),
            audit_repository,
        ),
        billing_service=BillingService(BillingRepository(session), audit_repository),
        family_service=FamilyService(FamilyRepository(session), IdentityRepository(session), audit_repository),
        settings=settings,
    )

"""Outbox consumer that retries failed reconciliations and alerts coaches."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from uuid import UUID

from app.modules.audit.models import OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.checkout.reconciliation import (
    EVENT_CHECKOUT_COMPLETED,
    EVENT_RECONCILIATION_FAILED,
    CheckoutReconciler,
)
from app.modules.checkout.stripe_client import StripeClient
from app.modules.coaches.repository import CoachesRepository
from app.modules.messaging.auto_reply import render_booking_alert
from app.modules.messaging.client import WhatsAppClient
from app.modules.messaging.phone import normalize_phone_number
from app.shared.utils import ensure_utc, utc_now

logger = logging.getLogger(__name__)


class ReconciliationIncompleteError(Exception):
    """A replayed reconciliation still has failing steps."""


class ReconciliationOutboxWorker:
    """Process checkout outbox events."""

    event_types = (EVENT_RECONCILIATION_FAILED, EVENT_CHECKOUT_COMPLETED)

    def __init__(
        self,
        audit_repository: AuditRepository,
        reconciler: CheckoutReconciler,
        stripe_client: StripeClient,
        coaches_repository: CoachesRepository,
        whatsapp_client: WhatsAppClient,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.audit_repository = audit_repository
        self.reconciler = reconciler
        self.stripe_client = stripe_client
        self.coaches_repository = coaches_repository
        self.whatsapp_client = whatsapp_client
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one processing cycle."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "alerts_sent": 0}
        stats["requeued"] = await self._requeue_retryable_failed_events()

        events = await self.audit_repository.list_pending_outbox(
            limit=self.batch_size,
            event_types=self.event_types,
        )
        for event in events:
            try:
                if event.event_type == EVENT_RECONCILIATION_FAILED:
                    await self._retry_reconciliation(event)
                elif await self._send_coach_alert(event):
                    stats["alerts_sent"] += 1
                await self.audit_repository.mark_outbox_processed(event, self.now_provider())
                stats["processed"] += 1
            except Exception as exc:
                logger.warning("Outbox event %s (%s) failed: %s", event.id, event.event_type, exc)
                await self.audit_repository.mark_outbox_failed(event, str(exc) or type(exc).__name__)
                stats["failed"] += 1
        return stats

    async def _requeue_retryable_failed_events(self) -> int:
        now = self.now_provider()
        failed_events = await self.audit_repository.list_failed_outbox(
            limit=self.batch_size,
            max_retries=self.max_retries,
            event_types=self.event_types,
        )
        requeued = 0
        for event in failed_events:
            if self._is_backoff_elapsed(event, now):
                await self.audit_repository.mark_outbox_pending(event)
                requeued += 1
        return requeued

    def _is_backoff_elapsed(self, event: OutboxEvent, now: datetime) -> bool:
        retries = max(event.retries, 1)
        backoff_seconds = min(
            self.max_backoff_seconds,
            self.base_backoff_seconds * (2 ** (retries - 1)),
        )
        last_attempt_at = ensure_utc(event.updated_at or event.occurred_at)
        return now >= last_attempt_at + timedelta(seconds=backoff_seconds)

    async def _retry_reconciliation(self, event: OutboxEvent) -> None:
        session_id = (event.payload or {}).get("session_id") or event.aggregate_id
        session = await self.stripe_client.retrieve_checkout_session(session_id)
        result = await self.reconciler.reconcile(session, source="retry", record_failures=False)
        if not result.succeeded:
            raise ReconciliationIncompleteError(f"Steps still failing: {', '.join(result.failed_steps)}")

    async def _send_coach_alert(self, event: OutboxEvent) -> bool:
        """WhatsApp the coach about a new paid booking; False when there is nobody to tell."""
        payload = event.payload or {}
        coach_id = payload.get("coach_id")
        if not coach_id or not self.whatsapp_client.configured:
            return False

        coach = await self.coaches_repository.get_profile_by_id(UUID(str(coach_id)))
        mobile_number = normalize_phone_number(coach.mobile_number) if coach is not None else None
        if mobile_number is None:
            return False

        await self.whatsapp_client.send_text(mobile_number, render_booking_alert(payload))
        return True

"""Executable worker for checkout reconciliation retries and coach alerts."""

from __future__ import annotations

import asyncio
import logging
import os

from app.core.config import get_settings
from app.core.database import SessionLocal
from app.modules.audit.repository import AuditRepository
from app.modules.checkout.outbox_worker import ReconciliationOutboxWorker
from app.modules.checkout.service import build_reconciler
from app.modules.checkout.stripe_client import build_stripe_client
from app.modules.coaches.repository import CoachesRepository
from app.modules.messaging.client import build_whatsapp_client

logger = logging.getLogger(__name__)


async def run_cycle() -> dict[str, int]:
    """Run a single outbox processing cycle in one DB transaction."""
    settings = get_settings()
    stripe_client = build_stripe_client(settings)
    async with SessionLocal() as session:
        worker = ReconciliationOutboxWorker(
            audit_repository=AuditRepository(session),
            reconciler=build_reconciler(session, stripe_client, settings),
            stripe_client=stripe_client,
            coaches_repository=CoachesRepository(session),
            whatsapp_client=build_whatsapp_client(settings),
            batch_size=int(os.getenv("RECONCILIATION_WORKER_BATCH_SIZE", "100")),
            max_retries=int(os.getenv("RECONCILIATION_WORKER_MAX_RETRIES", "5")),
            base_backoff_seconds=int(os.getenv("RECONCILIATION_WORKER_BASE_BACKOFF_SECONDS", "30")),
            max_backoff_seconds=int(os.getenv("RECONCILIATION_WORKER_MAX_BACKOFF_SECONDS", "300")),
        )
        stats = await worker.run_once()
        await session.commit()
        return stats


async def main() -> None:
    """Run once or keep polling according to worker mode."""
    logging.basicConfig(level=os.getenv("RECONCILIATION_WORKER_LOG_LEVEL", "INFO"))
    mode = os.getenv("RECONCILIATION_WORKER_MODE", "once").strip().lower()
    poll_seconds = int(os.getenv("RECONCILIATION_WORKER_POLL_SECONDS", "10"))

    if mode == "once":
        stats = await run_cycle()
        logger.info("Reconciliation worker stats: %s", stats)
        return

    while True:
        try:
            stats = await run_cycle()
            logger.info("Reconciliation worker stats: %s", stats)
        except Exception:
            logger.exception("Reconciliation worker cycle failed")
        await asyncio.sleep(poll_seconds)


if __name__ == "__main__":
    asyncio.run(main())

"""Async wrapper around the blocking Stripe SDK."""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable

import anyio
import stripe

from app.core.config import Settings, get_settings
from app.shared.exceptions import (
    ConfigurationException,
    SignatureVerificationException,
    UpstreamServiceException,
)

logger = logging.getLogger(__name__)


def as_dict(stripe_object: Any) -> dict[str, Any]:
    """Convert a Stripe resource (or a plain mapping) into a plain dict."""
    if stripe_object is None:
        return {}
    to_dict = getattr(stripe_object, "to_dict", None)
    if callable(to_dict):
        return to_dict()
    return dict(stripe_object)


def expandable_id(value: Any) -> str | None:
    """Expandable Stripe fields arrive either as an id or as the object."""
    if value is None:
        return None
    if isinstance(value, dict):
        return value.get("id")
    return str(value)


def invoice_payment_intent(invoice: dict[str, Any]) -> str | None:
    """Payment intent that paid an invoice.

    Newer API versions list it under ``payments`` instead of ``payment_intent``.
    """
    payment_intent = expandable_id(invoice.get("payment_intent"))
    if payment_intent:
        return payment_intent
    for entry in (invoice.get("payments") or {}).get("data") or []:
        payment_intent = expandable_id((entry.get("payment") or {}).get("payment_intent"))
        if payment_intent:
            return payment_intent
    return None


class StripeClient:
    """Thin async facade over ``stripe`` used by checkout and refunds.

    SDK calls run in a worker thread. Provider errors surface as
    ``UpstreamServiceException`` and missing keys as ``ConfigurationException``.
    """

    def __init__(
        self,
        *,
        secret_key: str | None,
        webhook_secret: str | None,
        timeout_seconds: float = 10.0,
        stripe_sdk: Any | None = None,
    ) -> None:
        self.stripe = stripe_sdk or stripe
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.timeout_seconds = timeout_seconds

    def _require_secret_key(self) -> None:
        if not self.secret_key:
            raise ConfigurationException("Stripe secret key is not configured")
        self.stripe.api_key = self.secret_key

    async def _call(self, fn: Callable[..., Any], /, *args, **kwargs) -> dict[str, Any]:
        try:
            with anyio.fail_after(self.timeout_seconds):
                result = await anyio.to_thread.run_sync(
                    functools.partial(fn, *args, **kwargs),
                    abandon_on_cancel=True,
                )
        except stripe.StripeError as exc:
            message = getattr(exc, "user_message", None) or str(exc)
            logger.warning("Stripe call %s failed: %s", getattr(fn, "__qualname__", fn), message)
            raise UpstreamServiceException(f"Payment provider error: {message}") from exc
        except TimeoutError as exc:
            logger.warning("Stripe call %s timed out", getattr(fn, "__qualname__", fn))
            raise UpstreamServiceException("Payment provider timed out") from exc
        return as_dict(result)

    async def create_checkout_session(
        self,
        params: dict[str, Any],
        *,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        self._require_secret_key()
        extra: dict[str, Any] = {}
        if idempotency_key:
            extra["idempotency_key"] = idempotency_key
        return await self._call(self.stripe.checkout.Session.create, **params, **extra)

    async def retrieve_checkout_session(self, session_id: str) -> dict[str, Any]:
        self._require_secret_key()
        return await self._call(self.stripe.checkout.Session.retrieve, session_id)

    async def retrieve_subscription(self, subscription_id: str) -> dict[str, Any]:
        self._require_secret_key()
        return await self._call(self.stripe.Subscription.retrieve, subscription_id)

    async def retrieve_invoice(self, invoice_id: str, *, expand: list[str] | None = None) -> dict[str, Any]:
        self._require_secret_key()
        if expand:
            return await self._call(self.stripe.Invoice.retrieve, invoice_id, expand=expand)
        return await self._call(self.stripe.Invoice.retrieve, invoice_id)

    async def create_refund(
        self,
        payment_intent_id: str,
        *,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Refund the full amount of a payment intent."""
        self._require_secret_key()
        extra: dict[str, Any] = {}
        if idempotency_key:
            extra["idempotency_key"] = idempotency_key
        return await self._call(self.stripe.Refund.create, payment_intent=payment_intent_id, **extra)

    def construct_webhook_event(self, payload: bytes, signature: str | None) -> dict[str, Any]:
        """Verify the ``Stripe-Signature`` header and parse the event."""
        if not self.webhook_secret:
            raise ConfigurationException("Stripe webhook secret is not configured")
        if not signature:
            raise SignatureVerificationException("Missing Stripe signature header")
        try:
            event = self.stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self.webhook_secret,
            )
        except stripe.SignatureVerificationError as exc:
            raise SignatureVerificationException("Invalid Stripe signature") from exc
        except ValueError as exc:
            raise SignatureVerificationException("Malformed Stripe event payload") from exc
        return as_dict(event)


def build_stripe_client(settings: Settings | None = None) -> StripeClient:
    settings = settings or get_settings()
    return StripeClient(
        secret_key=settings.stripe_secret_key,
        webhook_secret=settings.stripe_webhook_secret,
        timeout_seconds=settings.stripe_timeout_seconds,
    )

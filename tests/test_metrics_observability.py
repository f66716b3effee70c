from __future__ import annotations

import pytest
from fastapi import Request, Response
from prometheus_client import REGISTRY

import app.main as main_module
from app.core.metrics import (
    build_metrics_response,
    instrument_http_request,
    record_checkout_session,
    record_reconciliation,
    record_webhook_event,
)


def _make_request(path: str) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "headers": [],
        "client": ("127.0.0.1", 12345),
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": b"",
    }
    return Request(scope)


@pytest.mark.asyncio
async def test_http_metrics_instrumentation_tracks_status_and_path() -> None:
    async def _no_content(_: Request) -> Response:
        return Response(status_code=204)

    request = _make_request("/health")
    await instrument_http_request(request, _no_content)

    payload = build_metrics_response().body.decode("utf-8")
    assert "fleetwood_http_requests_total" in payload
    assert 'path="/health"' in payload
    assert 'status_code="204"' in payload


@pytest.mark.asyncio
async def test_metrics_endpoint_exposes_prometheus_payload() -> None:
    response = await main_module.metrics_endpoint(_make_request("/metrics"))
    payload = response.body.decode("utf-8")

    assert response.status_code == 200
    assert "fleetwood_http_requests_total" in payload


def _sample(name: str, labels: dict[str, str]) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_payment_counters_are_exported() -> None:
    webhook_labels = {"provider": "stripe", "outcome": "reconciled"}
    reconciliation_labels = {"flow": "CLASS", "outcome": "ok"}
    webhooks_before = _sample("fleetwood_webhook_events_total", webhook_labels)
    reconciliations_before = _sample("fleetwood_reconciliations_total", reconciliation_labels)

    record_checkout_session("MONTHLY")
    record_reconciliation("CLASS", "ok")
    record_webhook_event("stripe", "reconciled")

    payload = build_metrics_response().body.decode("utf-8")
    assert 'fleetwood_checkout_sessions_total{billing_mode="MONTHLY"}' in payload
    assert _sample("fleetwood_reconciliations_total", reconciliation_labels) == reconciliations_before + 1
    assert _sample("fleetwood_webhook_events_total", webhook_labels) == webhooks_before + 1

"""API tests for health, metrics and request tracing."""

from __future__ import annotations

import pytest

from mwarex.app_version import get_app_version

pytestmark = pytest.mark.anyio


@pytest.mark.parametrize("path", ["/health", "/api/v1/health"])
async def test_health_reports_provider_modes(async_client, path) -> None:
    resp = await async_client.get(path)
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["version"] == get_app_version()
    assert body["provider_modes"] == {"youtube": "fake", "email": "fake"}
    assert body["degraded_mode"] is True
    assert body["database_ready"] is True


async def test_db_health(async_client) -> None:
    resp = await async_client.get("/health/db")
    assert resp.status_code == 200
    assert resp.json()["database"] == "healthy"
    assert "migration_status" in resp.json() or "migrations_up_to_date" in resp.json()


async def test_request_id_is_echoed(async_client) -> None:
    resp = await async_client.get("/health", headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"
    assert "X-Response-Time-ms" in resp.headers

    resp = await async_client.get("/health")
    assert resp.headers["X-Request-ID"]


async def test_metrics_counts_requests(async_client) -> None:
    await async_client.get("/health")
    resp = await async_client.get("/metrics")
    assert resp.status_code == 200
    assert "mwarex_http_requests_total" in resp.text


async def test_unknown_route_uses_error_envelope(async_client) -> None:
    resp = await async_client.get("/api/v1/nope")
    assert resp.status_code == 404
    assert resp.json()["error"] == "http_error"

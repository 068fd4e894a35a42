from __future__ import annotations

import pytest
from httpx import AsyncClient

from greenhouse_hub import main
from greenhouse_hub.middleware.rate_limit import match_rule


@pytest.mark.asyncio
async def test_health_reports_service(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "service": main.SERVICE_NAME, "version": main.SERVICE_VERSION}


@pytest.mark.asyncio
async def test_health_ready_ok(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _ok(_app):
        return {"database": "ok", "redis": "disabled"}

    monkeypatch.setattr(main, "_run_readiness_checks", _ok)

    response = await client.get("/health/ready")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["checks"]["redis"] == "disabled"


@pytest.mark.asyncio
async def test_health_ready_degraded(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def _bad(_app):
        return {"database": "error", "redis": "ok"}

    monkeypatch.setattr(main, "_run_readiness_checks", _bad)

    response = await client.get("/health/ready")
    assert response.status_code == 503
    body = response.json()
    assert body["status"] == "degraded"
    assert body["checks"]["database"] == "error"


@pytest.mark.asyncio
async def test_request_id_is_propagated(client: AsyncClient) -> None:
    request_id = "greenhouse-request-id"
    response = await client.get("/health", headers={"x-request-id": request_id})
    assert response.status_code == 200
    assert response.headers.get("x-request-id") == request_id


@pytest.mark.asyncio
async def test_request_id_generated_when_missing(client: AsyncClient) -> None:
    response = await client.get("/health")
    generated = response.headers.get("x-request-id")
    assert generated is not None
    assert len(generated) >= 8


def test_rate_limit_rules() -> None:
    ai_rule = match_rule("POST", "/api/v1/ai/assessment")
    assert ai_rule is not None
    assert (ai_rule.scope, ai_rule.quota, ai_rule.window_seconds) == ("ai", 10, 900)

    analytics_rule = match_rule("POST", "/api/v1/analytics")
    assert analytics_rule is not None
    assert analytics_rule.scope == "analytics"

    assert match_rule("GET", "/api/v1/resources") is None
    assert match_rule("GET", "/api/v1/admin/analytics") is None


@pytest.mark.asyncio
async def test_analytics_rate_limit_returns_429(
    auth_client: AsyncClient, fake_redis, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(main.get_settings(), "rate_limit_analytics_requests", 1)
    main.app.state.redis = fake_redis
    batch = {"events": [{"eventType": "page_view"}]}

    first = await auth_client.post("/api/v1/analytics", json=batch)
    second = await auth_client.post("/api/v1/analytics", json=batch)

    assert first.status_code == 202
    assert second.status_code == 429
    assert second.json()["detail"]["error"] == "rate_limited"
    assert second.headers["retry-after"] == "60"


@pytest.mark.asyncio
async def test_rate_limit_is_skipped_without_redis(auth_client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main.get_settings(), "rate_limit_analytics_requests", 1)
    batch = {"events": [{"eventType": "page_view"}]}

    statuses = [(await auth_client.post("/api/v1/analytics", json=batch)).status_code for _ in range(3)]

    assert statuses == [202, 202, 202]

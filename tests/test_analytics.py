from __future__ import annotations

import json
from datetime import UTC, date, datetime
from uuid import uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from greenhouse_hub.errors import ValidationError
from greenhouse_hub.services.analytics_service import (
	SUMMARY_CACHE_KEY,
	AnalyticsService,
	validate_batch,
)


def _event(**overrides: object) -> dict[str, object]:
	event: dict[str, object] = {"eventType": "tab_view", "sessionId": "s-1", "tab": "grants"}
	event.update(overrides)
	return event


def test_validate_batch_accepts_camel_case_events() -> None:
	resource_id = uuid4()
	events = validate_batch([_event(eventType="resource_click", resourceId=str(resource_id))], 20)
	assert events[0].resource_id == resource_id
	assert events[0].session_id == "s-1"


def test_validate_batch_rejects_unknown_event_type() -> None:
	with pytest.raises(ValidationError) as excinfo:
		validate_batch([_event(), _event(eventType="mouse_move")], 20)
	assert "events[1]" in excinfo.value.message


def test_validate_batch_enforces_size_limits() -> None:
	with pytest.raises(ValidationError):
		validate_batch([], 20)
	with pytest.raises(ValidationError):
		validate_batch([_event() for _ in range(21)], 20)


@pytest.mark.asyncio
async def test_ingest_reports_stored_batch(fake_db_session) -> None:
	result = await AnalyticsService(fake_db_session).ingest([_event(), _event(tab="tools")])

	assert result.accepted == 2
	assert result.stored is True
	rows = fake_db_session.execute.call_args.args[1]
	assert [row["tab"] for row in rows] == ["grants", "tools"]


@pytest.mark.asyncio
async def test_ingest_storage_failure_is_best_effort(fake_db_session) -> None:
	fake_db_session.nested_failure = OperationalError("INSERT", {}, Exception("db down"))

	result = await AnalyticsService(fake_db_session).ingest([_event()])

	assert result.accepted == 1
	assert result.stored is False


@pytest.mark.asyncio
async def test_ingest_endpoint_accepts_anonymous_batches(auth_client: AsyncClient) -> None:
	response = await auth_client.post("/api/v1/analytics", json={"events": [_event()]})
	assert response.status_code == 202
	assert response.json() == {"accepted": 1, "stored": True}


@pytest.mark.asyncio
async def test_ingest_endpoint_rejects_oversized_batch(auth_client: AsyncClient, fake_db_session) -> None:
	response = await auth_client.post("/api/v1/analytics", json={"events": [_event() for _ in range(21)]})

	assert response.status_code == 400
	assert response.json()["detail"]["error"] == "validation_error"
	fake_db_session.execute.assert_not_called()


@pytest.mark.asyncio
async def test_ingest_endpoint_rejects_unknown_event_type(auth_client: AsyncClient) -> None:
	response = await auth_client.post("/api/v1/analytics", json={"events": [_event(eventType="hover")]})
	assert response.status_code == 400


@pytest.mark.asyncio
async def test_summary_served_from_cache(fake_db_session, fake_redis) -> None:
	cached = {
		"total_events": 7,
		"events_by_type": {"tab_view": 7},
		"events_by_tab": {"grants": 7},
		"daily_events": [{"day": "2025-06-01", "count": 7}],
		"generated_at": datetime.now(UTC).isoformat(),
	}
	fake_redis.get.return_value = json.dumps(cached)

	summary = await AnalyticsService(fake_db_session, fake_redis).summary()

	assert summary.cached is True
	assert summary.total_events == 7
	fake_redis.get.assert_awaited_once_with(SUMMARY_CACHE_KEY)
	fake_db_session.execute.assert_not_called()


@pytest.mark.asyncio
async def test_summary_computes_and_caches(fake_db_session, fake_result, fake_redis) -> None:
	fake_db_session.execute.side_effect = [
		fake_result(scalar=3),
		fake_result(rows=[("tab_view", 2), ("search", 1)]),
		fake_result(rows=[("grants", 2)]),
		fake_result(rows=[(date(2025, 6, 1), 3)]),
	]

	summary = await AnalyticsService(fake_db_session, fake_redis).summary(today=date(2025, 6, 2))

	assert summary.total_events == 3
	assert summary.events_by_type == {"tab_view": 2, "search": 1}
	assert summary.daily_events[0].count == 3
	assert summary.cached is False
	fake_redis.setex.assert_awaited_once()


@pytest.mark.asyncio
async def test_summary_requires_admin(client: AsyncClient) -> None:
	response = await client.get("/api/v1/admin/analytics")
	assert response.status_code == 403

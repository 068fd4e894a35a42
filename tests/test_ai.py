from __future__ import annotations

import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from uuid import uuid4

import pytest
from httpx import AsyncClient

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import ExternalServiceError
from greenhouse_hub.models.community import ChatLog
from greenhouse_hub.models.enums import ChatLogKindEnum, MemberTypeEnum
from greenhouse_hub.services import llm_service
from greenhouse_hub.services.llm_service import AI_UNAVAILABLE_MESSAGE, LLMService, parse_stream_event


def _sse_events(body: str) -> list[tuple[str | None, dict[str, object]]]:
	events: list[tuple[str | None, dict[str, object]]] = []
	for block in body.strip().split("\n\n"):
		event_name = None
		data = None
		for line in block.splitlines():
			if line.startswith("event: "):
				event_name = line[len("event: "):]
			elif line.startswith("data: "):
				data = json.loads(line[len("data: "):])
		if data is not None:
			events.append((event_name, data))
	return events


@pytest.fixture
def no_llm_key(monkeypatch: pytest.MonkeyPatch) -> None:
	monkeypatch.setattr(get_settings(), "anthropic_api_key", "")


@pytest.fixture
def chat_log_sessions(monkeypatch: pytest.MonkeyPatch) -> list[object]:
	"""Capture chat logs written through the standalone session factory."""
	written: list[object] = []

	class _Session:
		def add(self, instance: object) -> None:
			written.append(instance)

		async def commit(self) -> None:
			return None

	@asynccontextmanager
	async def factory() -> AsyncIterator[_Session]:
		yield _Session()

	monkeypatch.setattr(llm_service, "async_session_factory", factory)
	return written


def test_parse_stream_event_extracts_text_deltas() -> None:
	delta = {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hello"}}
	assert parse_stream_event(f"data: {json.dumps(delta)}") == "Hello"
	assert parse_stream_event("event: content_block_delta") is None
	assert parse_stream_event('data: {"type": "message_stop"}') is None
	assert parse_stream_event("data: not-json") is None


def test_parse_stream_event_raises_on_provider_error() -> None:
	with pytest.raises(ExternalServiceError):
		parse_stream_event('data: {"type": "error", "error": {"type": "overloaded_error"}}')


@pytest.mark.asyncio
async def test_find_grower_without_key_uses_directory(
	client: AsyncClient, fake_db_session, fake_result, no_llm_key
) -> None:
	grower = SimpleNamespace(
		name="Sam Lettuce",
		state="PA",
		farm_type="Hydroponic",
		other_farm_type=None,
		employer="Leafy Co",
		job_title="Head Grower",
		member_type=MemberTypeEnum.grower,
		created_at=datetime.now(UTC),
	)
	fake_db_session.execute.return_value = fake_result(rows=[grower])

	response = await client.post("/api/v1/ai/find-grower", json={"question": "Who grows lettuce in PA?"})

	assert response.status_code == 200
	assert "Sam Lettuce" in response.json()["response"]
	(log,) = fake_db_session.added
	assert isinstance(log, ChatLog)
	assert log.kind == ChatLogKindEnum.find_grower


@pytest.mark.asyncio
async def test_find_grower_provider_failure_returns_503(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
	async def failing(self: LLMService, user_id: object, question: str) -> str:
		raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE)

	monkeypatch.setattr(LLMService, "find_grower", failing)

	response = await client.post("/api/v1/ai/find-grower", json={"question": "Who grows lettuce?"})

	assert response.status_code == 503
	assert response.json()["detail"] == {"error": "service_unavailable", "message": AI_UNAVAILABLE_MESSAGE}


@pytest.mark.asyncio
async def test_assessment_streams_deltas_then_done(
	client: AsyncClient, no_llm_key, chat_log_sessions
) -> None:
	response = await client.post("/api/v1/ai/assessment", json={"input": "How do I cut heating costs?"})

	assert response.status_code == 200
	assert response.headers["content-type"].startswith("text/event-stream")
	events = _sse_events(response.text)
	deltas = [data["delta"] for name, data in events if "delta" in data]
	final_name, final = events[-1]
	assert final_name is None
	assert final["done"] is True
	assert final["response"] == "".join(deltas)
	assert len(deltas) > 1

	(log,) = chat_log_sessions
	assert log.kind == ChatLogKindEnum.assessment
	assert log.response == final["response"]


@pytest.mark.asyncio
async def test_assessment_failure_before_first_chunk_is_503(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
	async def failing(self: LLMService, user_id: object, text: str, session_id: str | None = None) -> AsyncIterator[str]:
		raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE)
		yield ""

	monkeypatch.setattr(LLMService, "stream_assessment", failing)

	response = await client.post("/api/v1/ai/assessment", json={"input": "Help"})

	assert response.status_code == 503
	assert response.json()["detail"]["error"] == "service_unavailable"


@pytest.mark.asyncio
async def test_assessment_failure_mid_stream_emits_error_event(
	client: AsyncClient, monkeypatch: pytest.MonkeyPatch
) -> None:
	async def partial(self: LLMService, user_id: object, text: str, session_id: str | None = None) -> AsyncIterator[str]:
		yield "Start by "
		raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE)

	monkeypatch.setattr(LLMService, "stream_assessment", partial)

	response = await client.post("/api/v1/ai/assessment", json={"input": "Help", "sessionId": str(uuid4())})

	assert response.status_code == 200
	events = _sse_events(response.text)
	assert events[0] == (None, {"delta": "Start by "})
	assert events[-1] == ("error", {"error": "service_unavailable", "message": AI_UNAVAILABLE_MESSAGE})
	assert not any(data.get("done") for _, data in events)


@pytest.mark.asyncio
async def test_ai_endpoints_are_rate_limited(
	client: AsyncClient, fake_redis, monkeypatch: pytest.MonkeyPatch
) -> None:
	from greenhouse_hub.main import app

	async def answer(self: LLMService, user_id: object, question: str) -> str:
		return "Try the county extension office."

	monkeypatch.setattr(LLMService, "find_grower", answer)
	monkeypatch.setattr(get_settings(), "rate_limit_ai_requests", 2)
	app.state.redis = fake_redis

	statuses = [
		(await client.post("/api/v1/ai/find-grower", json={"question": "Anyone near Dayton?"})).status_code
		for _ in range(3)
	]

	assert statuses == [200, 200, 429]

"""AI assistants: find-a-grower and the streamed farm assessment chat."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_member
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import ServiceError, error_detail, map_error
from greenhouse_hub.schemas.ai import AssessmentChatRequest, FindGrowerRequest, FindGrowerResponse
from greenhouse_hub.services.llm_service import AI_UNAVAILABLE_MESSAGE, LLMService

logger = structlog.get_logger("greenhouse_hub.ai")

router = APIRouter(prefix="/ai", tags=["ai"])


def _sse(data: dict[str, Any], event: str | None = None) -> str:
	prefix = f"event: {event}\n" if event else ""
	return f"{prefix}data: {json.dumps(data)}\n\n"


@router.post("/find-grower", response_model=FindGrowerResponse)
async def find_grower(
	payload: FindGrowerRequest,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> FindGrowerResponse:
	service = LLMService(db)
	try:
		answer = await service.find_grower(current_user.id, payload.question)
	except Exception as exc:
		raise map_error(exc, AI_UNAVAILABLE_MESSAGE) from exc
	return FindGrowerResponse(response=answer)


async def _assessment_events(first: str | None, stream: AsyncIterator[str]) -> AsyncIterator[str]:
	collected: list[str] = []
	try:
		if first is not None:
			collected.append(first)
			yield _sse({"delta": first})
		async for chunk in stream:
			collected.append(chunk)
			yield _sse({"delta": chunk})
	except ServiceError as exc:
		yield _sse(error_detail(exc.code, exc.message), event="error")
		return
	except Exception as exc:
		logger.exception("assessment_stream_failed", error=str(exc))
		yield _sse(error_detail("service_unavailable", AI_UNAVAILABLE_MESSAGE), event="error")
		return
	yield _sse({"done": True, "response": "".join(collected)})


@router.post("/assessment")
async def assessment_chat(
	payload: AssessmentChatRequest,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> StreamingResponse:
	service = LLMService(db)
	stream = service.stream_assessment(current_user.id, payload.input, payload.session_id)
	# first chunk is awaited before the response starts; a provider failure here is a 503
	try:
		first: str | None = await anext(stream)
	except StopAsyncIteration:
		first = None
	except Exception as exc:
		raise map_error(exc, AI_UNAVAILABLE_MESSAGE) from exc

	return StreamingResponse(
		_assessment_events(first, stream),
		media_type="text/event-stream",
		headers={"cache-control": "no-cache", "x-accel-buffering": "no"},
	)

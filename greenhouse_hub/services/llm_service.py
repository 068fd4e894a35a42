"""LLM integration — directory-grounded grower matching and the streamed assessment chat.

Both assistants call the Anthropic Messages API over httpx.  Without an API
key they answer from canned text so the endpoints stay usable in
development.  Provider failures surface as ExternalServiceError carrying a
message that is safe to show to members; details go to the log only.
"""

from __future__ import annotations

import json
import uuid
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.config import get_settings
from greenhouse_hub.database import async_session_factory
from greenhouse_hub.errors import ExternalServiceError
from greenhouse_hub.models.community import ChatLog
from greenhouse_hub.models.enums import ChatLogKindEnum
from greenhouse_hub.services.member_service import DirectoryEntry, MemberService

logger = structlog.get_logger("greenhouse_hub.llm")

AI_UNAVAILABLE_MESSAGE = "AI service is currently unavailable. Please try again later."
ANTHROPIC_VERSION = "2023-06-01"

FIND_GROWER_MAX_TOKENS = 500
ASSESSMENT_MAX_TOKENS = 800

_FIND_GROWER_PROMPT = """You are an AI assistant for the United Greenhouse Growers Association (UGGA). \
Your role is to help members find and connect with other growers based on their specific needs.

Given a member directory and a question, suggest relevant growers who might be able to help. Focus on:
- Geographic proximity when relevant
- Farm type expertise
- Professional experience
- Specific skills or knowledge areas

Be helpful, professional, and specific in your recommendations. If you can't find exact matches, \
suggest similar alternatives or broader categories.

Member Directory (showing name, state, farm type, employer, job title):
{directory}"""

_ASSESSMENT_PROMPT = """You are an expert agricultural consultant specializing in greenhouse operations. \
You provide comprehensive farm assessments and recommendations for greenhouse growers.

Your role is to:
- Analyze greenhouse operations based on user input
- Provide specific, actionable recommendations
- Focus on efficiency, sustainability, and profitability
- Consider climate control, crop selection, pest management, irrigation, and technology adoption
- Give practical advice that growers can implement

Be thorough but concise. Ask follow-up questions when you need more information to provide \
better recommendations.

{session_note}"""

_ASSESSMENT_FALLBACK = (
	"AI-assisted assessment is not configured on this server. ",
	"Start with the farm roadmap self assessment: it scores farm design, technology, ",
	"processes, organization, yields and crops, and lists the improvements with the ",
	"highest expected impact for your operation.",
)


def directory_payload(entries: list[DirectoryEntry]) -> list[dict[str, Any]]:
	return [
		{
			"name": entry.name,
			"state": entry.state,
			"farmType": entry.farm_type,
			"employer": entry.employer,
			"jobTitle": entry.job_title,
		}
		for entry in entries
	]


def assessment_system_prompt(session_id: str | None) -> str:
	if session_id:
		note = (
			f"This is a continuing conversation (Session: {session_id}). "
			"Reference previous context when relevant."
		)
	else:
		note = "This is the start of a new farm assessment conversation."
	return _ASSESSMENT_PROMPT.format(session_note=note)


def parse_stream_event(line: str) -> str | None:
	"""Text carried by one SSE ``data:`` line of a Messages stream, if any.

	Provider-side ``error`` events raise ExternalServiceError.
	"""
	if not line.startswith("data:"):
		return None
	raw = line[len("data:"):].strip()
	if not raw:
		return None
	try:
		event = json.loads(raw)
	except json.JSONDecodeError:
		return None
	if not isinstance(event, dict):
		return None
	if event.get("type") == "error":
		logger.warning("llm_stream_error", error=event.get("error"))
		raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE)
	if event.get("type") != "content_block_delta":
		return None
	delta = event.get("delta")
	if isinstance(delta, dict) and delta.get("type") == "text_delta":
		text = delta.get("text")
		return text if isinstance(text, str) and text else None
	return None


class LLMService:
	def __init__(
		self,
		db: AsyncSession,
		session_factory: Callable[[], Any] | None = None,
	):
		self.db = db
		self.settings = get_settings()
		self.session_factory = session_factory or async_session_factory

	def _headers(self) -> dict[str, str]:
		return {
			"x-api-key": self.settings.anthropic_api_key,
			"anthropic-version": ANTHROPIC_VERSION,
			"content-type": "application/json",
		}

	def _body(self, system_prompt: str, user_text: str, max_tokens: int, stream: bool) -> dict[str, Any]:
		body: dict[str, Any] = {
			"model": self.settings.anthropic_model,
			"max_tokens": max_tokens,
			"system": system_prompt,
			"messages": [{"role": "user", "content": user_text}],
		}
		if stream:
			body["stream"] = True
		return body

	# ── Find a grower ─────────────────────────────────────────────────────

	async def find_grower(self, user_id: uuid.UUID, question: str) -> str:
		entries = await MemberService(self.db).directory(self.settings.find_grower_member_limit)
		if not self.settings.anthropic_api_key:
			answer = self._fallback_find_grower(entries)
		else:
			system_prompt = _FIND_GROWER_PROMPT.format(
				directory=json.dumps(directory_payload(entries), indent=2)
			)
			answer = await self.call_llm(system_prompt, question, FIND_GROWER_MAX_TOKENS)

		self.db.add(
			ChatLog(user_id=user_id, kind=ChatLogKindEnum.find_grower, prompt=question, response=answer)
		)
		await self.db.flush()
		return answer

	async def call_llm(self, system_prompt: str, user_text: str, max_tokens: int) -> str:
		body = self._body(system_prompt, user_text, max_tokens, stream=False)
		try:
			async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout_seconds) as client:
				response = await client.post(self.settings.anthropic_base_url, headers=self._headers(), json=body)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("llm_call_failed", error=str(exc))
			raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE) from exc

		content = payload.get("content") if isinstance(payload, dict) else None
		if not isinstance(content, list):
			logger.warning("llm_call_failed", error="response has no content blocks")
			raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE)
		text = "".join(
			str(block.get("text") or "")
			for block in content
			if isinstance(block, dict) and block.get("type") == "text"
		).strip()
		if not text:
			return "I apologize, but I couldn't process your request. Please try rephrasing your question."
		return text

	@staticmethod
	def _fallback_find_grower(entries: list[DirectoryEntry]) -> str:
		if not entries:
			return "No grower profiles are available in the member directory yet."
		lines = ["AI matching is not configured. A few growers from the member directory:"]
		for entry in entries[:5]:
			detail = ", ".join(part for part in (entry.state, entry.farm_type, entry.employer) if part)
			lines.append(f"- {entry.name} ({detail})")
		return "\n".join(lines)

	# ── Assessment chat ───────────────────────────────────────────────────

	async def stream_assessment(
		self,
		user_id: uuid.UUID,
		text: str,
		session_id: str | None = None,
	) -> AsyncIterator[str]:
		"""Yield response text chunks, then record the full exchange in the chat log."""
		collected: list[str] = []
		if not self.settings.anthropic_api_key:
			for chunk in _ASSESSMENT_FALLBACK:
				collected.append(chunk)
				yield chunk
		else:
			async for chunk in self._stream_llm(assessment_system_prompt(session_id), text):
				collected.append(chunk)
				yield chunk
		await self._record_chat(user_id, ChatLogKindEnum.assessment, text, "".join(collected))

	async def _stream_llm(self, system_prompt: str, user_text: str) -> AsyncIterator[str]:
		body = self._body(system_prompt, user_text, ASSESSMENT_MAX_TOKENS, stream=True)
		try:
			async with httpx.AsyncClient(timeout=self.settings.anthropic_timeout_seconds) as client:
				async with client.stream(
					"POST",
					self.settings.anthropic_base_url,
					headers=self._headers(),
					json=body,
				) as response:
					response.raise_for_status()
					async for line in response.aiter_lines():
						chunk = parse_stream_event(line)
						if chunk is not None:
							yield chunk
		except httpx.HTTPError as exc:
			logger.warning("llm_call_failed", error=str(exc), stream=True)
			raise ExternalServiceError(AI_UNAVAILABLE_MESSAGE) from exc

	async def _record_chat(self, user_id: uuid.UUID, kind: ChatLogKindEnum, prompt: str, response: str) -> None:
		# streamed responses outlive the request session, so the log gets its own
		try:
			async with self.session_factory() as session:
				session.add(ChatLog(user_id=user_id, kind=kind, prompt=prompt, response=response))
				await session.commit()
		except SQLAlchemyError as exc:
			logger.warning("chat_log_failed", kind=str(kind), error=str(exc))

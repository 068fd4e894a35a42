"""Redis-backed fixed-window rate limiting middleware."""

from __future__ import annotations

import time
from dataclasses import dataclass

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from greenhouse_hub.auth.dependencies import client_key, extract_identity_hint
from greenhouse_hub.config import get_settings


@dataclass(frozen=True, slots=True)
class RateLimitRule:
	scope: str
	quota: int
	window_seconds: int


def match_rule(method: str, path: str) -> RateLimitRule | None:
	"""Return the quota that applies to a request, or None when it is unmetered."""
	settings = get_settings()
	if path.startswith("/api/v1/ai/"):
		return RateLimitRule(
			scope="ai",
			quota=settings.rate_limit_ai_requests,
			window_seconds=settings.rate_limit_ai_window_seconds,
		)
	if method == "POST" and path.rstrip("/") == "/api/v1/analytics":
		return RateLimitRule(
			scope="analytics",
			quota=settings.rate_limit_analytics_requests,
			window_seconds=settings.rate_limit_analytics_window_seconds,
		)
	return None


class RateLimitMiddleware(BaseHTTPMiddleware):
	"""Per-client quota limiter backed by Redis atomic counters."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		rule = match_rule(request.method, request.url.path)
		if rule is None:
			return await call_next(request)

		redis_client = getattr(request.app.state, "redis", None)
		if redis_client is None:
			return await call_next(request)

		window = int(time.time()) // rule.window_seconds
		identity = extract_identity_hint(request)
		key = f"ratelimit:{rule.scope}:{client_key(request)}:{identity}:{window}"
		current = await redis_client.incr(key)
		if current == 1:
			await redis_client.expire(key, rule.window_seconds + 5)

		if current > rule.quota:
			return JSONResponse(
				status_code=429,
				content={
					"detail": {
						"error": "rate_limited",
						"message": "Too many requests. Please try again later.",
						"quota": rule.quota,
						"window_seconds": rule.window_seconds,
					}
				},
				headers={"retry-after": str(rule.window_seconds)},
			)

		return await call_next(request)

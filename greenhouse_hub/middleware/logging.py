"""Structured logging setup and per-request access logging."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from greenhouse_hub.config import LogFormat, get_settings

_configured = False

_QUIET_PATHS = ("/health",)


def configure_structured_logging() -> None:
	"""Route stdlib logging and structlog through one renderer, once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		structlog.processors.StackInfoRenderer(),
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		processors.append(structlog.processors.JSONRenderer())
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		processors.append(structlog.dev.ConsoleRenderer())
		logging.basicConfig(level=log_level)

	# uvicorn's own access log duplicates the http_request event below
	logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

	structlog.configure(
		processors=processors,
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id to the log context and emit one timing event per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(
			request_id=request_id,
			method=request.method,
			path=request.url.path,
		)
		logger = structlog.get_logger("greenhouse_hub.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception:
			logger.exception(
				"http_request_failed",
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
			)
			raise

		duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
		response.headers["x-request-id"] = request_id
		if request.url.path.startswith(_QUIET_PATHS):
			logger.debug("http_request", status_code=response.status_code, duration_ms=duration_ms)
		elif response.status_code >= 500:
			logger.error("http_request", status_code=response.status_code, duration_ms=duration_ms)
		else:
			logger.info("http_request", status_code=response.status_code, duration_ms=duration_ms)
		return response

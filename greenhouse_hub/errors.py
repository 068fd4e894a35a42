"""Typed service errors and their single mapping onto HTTP responses."""

from __future__ import annotations

import structlog
from fastapi import HTTPException, status

logger = structlog.get_logger("greenhouse_hub.errors")


class ServiceError(Exception):
	"""Base class for errors raised by domain services."""

	status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
	code = "internal_error"

	def __init__(self, message: str, *, code: str | None = None) -> None:
		super().__init__(message)
		self.message = message
		if code is not None:
			self.code = code


class ValidationError(ServiceError, ValueError):
	status_code = status.HTTP_400_BAD_REQUEST
	code = "validation_error"


class InvalidCursorError(ValidationError):
	code = "invalid_cursor"


class AuthenticationError(ServiceError):
	status_code = status.HTTP_401_UNAUTHORIZED
	code = "auth_required"


class AuthorizationError(ServiceError):
	status_code = status.HTTP_403_FORBIDDEN
	code = "forbidden"


class NotFoundError(ServiceError, LookupError):
	status_code = status.HTTP_404_NOT_FOUND
	code = "not_found"


class ConflictError(ServiceError):
	status_code = status.HTTP_409_CONFLICT
	code = "conflict"


class ExternalServiceError(ServiceError):
	"""An upstream provider (LLM, email) failed; message is safe to show users."""

	status_code = status.HTTP_503_SERVICE_UNAVAILABLE
	code = "service_unavailable"


def error_detail(code: str, message: str) -> dict[str, str]:
	return {"error": code, "message": message}


def map_error(exc: Exception, fallback: str = "Unexpected server failure") -> HTTPException:
	if isinstance(exc, HTTPException):
		return exc
	if isinstance(exc, ServiceError):
		return HTTPException(status_code=exc.status_code, detail=error_detail(exc.code, exc.message))
	# untyped errors keep their status but never echo their text to the client
	if isinstance(exc, LookupError):
		logger.warning("untyped_lookup_error", error_type=type(exc).__name__, error=str(exc))
		return HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail=error_detail("not_found", "Requested item was not found"),
		)
	if isinstance(exc, ValueError):
		logger.warning("untyped_value_error", error_type=type(exc).__name__, error=str(exc))
		return HTTPException(
			status_code=status.HTTP_400_BAD_REQUEST,
			detail=error_detail("validation_error", "Request could not be processed"),
		)
	logger.error("unhandled_service_error", error_type=type(exc).__name__, exc_info=exc)
	return HTTPException(
		status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
		detail=error_detail("internal_error", fallback),
	)

"""JWT session token creation and validation."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import AuthenticationError
from greenhouse_hub.models.enums import UserRoleEnum

SESSION_TOKEN_TYPE = "session"


def create_session_token(
	subject: str,
	role: UserRoleEnum,
	expires_minutes: int | None = None,
) -> str:
	"""Sign a session token carrying the user id and the role at issue time.

	The role claim is informational; request gating always reloads the user.
	"""
	settings = get_settings()
	ttl = expires_minutes or settings.jwt_access_token_expire_minutes
	now = datetime.now(UTC)
	claims: dict[str, Any] = {
		"sub": subject,
		"role": str(role),
		"typ": SESSION_TOKEN_TYPE,
		"iat": int(now.timestamp()),
		"exp": int((now + timedelta(minutes=ttl)).timestamp()),
	}
	return jwt.encode(claims, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_session_token(token: str) -> dict[str, Any]:
	settings = get_settings()
	try:
		payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
	except JWTError as exc:
		raise AuthenticationError("Invalid authentication token", code="token_invalid") from exc

	subject = payload.get("sub")
	if not isinstance(subject, str) or not subject:
		raise AuthenticationError("Token subject is missing", code="token_invalid")

	if payload.get("typ") != SESSION_TOKEN_TYPE:
		raise AuthenticationError("Unexpected token type", code="token_type_invalid")

	exp_raw = payload.get("exp")
	if not isinstance(exp_raw, int):
		raise AuthenticationError("Token expiration is missing", code="token_invalid")
	if datetime.now(UTC).timestamp() >= exp_raw:
		raise AuthenticationError("Authentication token has expired", code="token_expired")

	return payload

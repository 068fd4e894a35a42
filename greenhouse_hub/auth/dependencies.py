"""Authentication dependencies — password hashing, get_current_user, require_role."""

from __future__ import annotations

import uuid
from typing import Callable

from fastapi import Depends, HTTPException, Request, Response, status
from fastapi.security import HTTPBearer
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.jwt import decode_session_token
from greenhouse_hub.auth.models import User
from greenhouse_hub.config import get_settings
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import AuthenticationError, map_error
from greenhouse_hub.models.enums import UserRoleEnum

bearer_scheme = HTTPBearer(auto_error=False)
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

MEMBER_ROLES = (UserRoleEnum.member, UserRoleEnum.admin)


def hash_password(plaintext: str) -> str:
	return pwd_context.hash(plaintext)


def verify_password(plaintext: str, password_hash: str) -> bool:
	try:
		return pwd_context.verify(plaintext, password_hash)
	except ValueError:
		return False


def set_session_cookie(response: Response, token: str) -> None:
	settings = get_settings()
	response.set_cookie(
		key=settings.auth_cookie_name,
		value=token,
		max_age=settings.jwt_access_token_expire_minutes * 60,
		httponly=True,
		secure=settings.auth_cookie_secure,
		samesite="lax",
		path="/",
	)


def clear_session_cookie(response: Response) -> None:
	settings = get_settings()
	response.delete_cookie(key=settings.auth_cookie_name, path="/")


async def _extract_token(request: Request) -> str | None:
	cookie_token = request.cookies.get(get_settings().auth_cookie_name)
	if cookie_token:
		return cookie_token
	credentials = await bearer_scheme(request)
	if credentials is not None and credentials.scheme.lower() == "bearer":
		return credentials.credentials
	return None


def extract_identity_hint(request: Request) -> str:
	if request.cookies.get(get_settings().auth_cookie_name):
		return "cookie"
	if request.headers.get("authorization", "").lower().startswith("bearer "):
		return "jwt"
	return "anonymous"


def client_key(request: Request) -> str:
	"""Rate-limit key for the caller: first forwarded hop, else the peer address."""
	forwarded = request.headers.get("x-forwarded-for", "")
	if forwarded:
		first = forwarded.split(",")[0].strip()
		if first:
			return first
	if request.client is not None:
		return request.client.host
	return "unknown"


async def _resolve_user(db: AsyncSession, token: str | None) -> User:
	if token is None:
		raise AuthenticationError("Authentication is required")

	payload = decode_session_token(token)
	try:
		user_id = uuid.UUID(str(payload["sub"]))
	except (ValueError, KeyError) as exc:
		raise AuthenticationError("Token subject is invalid", code="token_invalid") from exc

	row = await db.execute(select(User).where(User.id == user_id))
	user = row.scalar_one_or_none()
	if user is None:
		raise AuthenticationError("User no longer exists", code="user_invalid")
	return user


async def get_current_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User:
	token = await _extract_token(request)
	try:
		return await _resolve_user(db, token)
	except AuthenticationError as exc:
		raise map_error(exc) from exc


async def get_optional_user(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> User | None:
	"""Like get_current_user, but anonymous or stale sessions resolve to None."""
	token = await _extract_token(request)
	if token is None:
		return None
	try:
		return await _resolve_user(db, token)
	except AuthenticationError:
		return None


def require_role(*allowed: UserRoleEnum) -> Callable[[User], User]:
	allowed_set = set(allowed)

	async def dependency(current_user: User = Depends(get_current_user)) -> User:
		if current_user.role not in allowed_set:
			raise HTTPException(
				status_code=status.HTTP_403_FORBIDDEN,
				detail={"error": "forbidden", "message": "Insufficient role"},
			)
		return current_user

	return dependency


require_member = require_role(*MEMBER_ROLES)
require_admin = require_role(UserRoleEnum.admin)

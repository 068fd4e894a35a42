"""Registration, session cookie login/logout, and the signed-in member's account."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import (
	clear_session_cookie,
	get_current_user,
	require_member,
	set_session_cookie,
)
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.schemas.auth import (
	AuthResponse,
	ChangePasswordRequest,
	LoginRequest,
	MessageResponse,
	ProfileUpdate,
	RegisterRequest,
	UserRead,
)
from greenhouse_hub.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])
profile_router = APIRouter(prefix="/profile", tags=["auth"])


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
	payload: RegisterRequest,
	response: Response,
	db: AsyncSession = Depends(get_db),
) -> AuthResponse:
	service = AuthService(db)
	try:
		user, token = await service.register(payload)
	except Exception as exc:
		raise map_error(exc, "Registration failed") from exc
	set_session_cookie(response, token)
	return AuthResponse(user=UserRead.model_validate(user), message="Registration successful")


@router.post("/login", response_model=AuthResponse)
async def login(
	payload: LoginRequest,
	response: Response,
	db: AsyncSession = Depends(get_db),
) -> AuthResponse:
	service = AuthService(db)
	try:
		user, token = await service.login(payload.identifier, payload.password)
	except Exception as exc:
		raise map_error(exc, "Login failed") from exc
	set_session_cookie(response, token)
	return AuthResponse(user=UserRead.model_validate(user), message="Login successful")


@router.post("/logout", response_model=MessageResponse)
async def logout(response: Response) -> MessageResponse:
	clear_session_cookie(response)
	return MessageResponse(message="Logged out")


@router.get("/me", response_model=UserRead)
async def me(current_user: User = Depends(get_current_user)) -> UserRead:
	return UserRead.model_validate(current_user)


@router.put("/change-password", response_model=MessageResponse)
async def change_password(
	payload: ChangePasswordRequest,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(get_current_user),
) -> MessageResponse:
	service = AuthService(db)
	try:
		await service.change_password(current_user, payload.current_password, payload.new_password)
	except Exception as exc:
		raise map_error(exc, "Password change failed") from exc
	return MessageResponse(message="Password updated")


@profile_router.put("", response_model=UserRead)
async def update_profile(
	payload: ProfileUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> UserRead:
	service = AuthService(db)
	try:
		user = await service.update_profile(current_user.id, payload)
	except Exception as exc:
		raise map_error(exc, "Profile update failed") from exc
	return UserRead.model_validate(user)

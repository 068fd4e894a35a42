"""Registration, login, password change and profile maintenance."""

from __future__ import annotations

import uuid

import structlog
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import hash_password, verify_password
from greenhouse_hub.auth.jwt import create_session_token
from greenhouse_hub.auth.models import Profile, User
from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import AuthenticationError, ConflictError, ValidationError
from greenhouse_hub.models.enums import UserRoleEnum
from greenhouse_hub.schemas.auth import ProfileFields, RegisterRequest
from greenhouse_hub.services.email_service import EmailService

logger = structlog.get_logger("greenhouse_hub.auth")

_PROFILE_FIELDS = tuple(ProfileFields.model_fields)


def _profile_values(payload: ProfileFields) -> dict[str, object]:
	values = payload.model_dump(include=set(_PROFILE_FIELDS))
	values["climate_control"] = values.get("climate_control") or []
	values["crop_types"] = values.get("crop_types") or []
	return values


class AuthService:
	def __init__(self, db: AsyncSession, email_service: EmailService | None = None):
		self.db = db
		self.email_service = email_service or EmailService()
		self.settings = get_settings()

	def _check_password_strength(self, password: str) -> None:
		if len(password) < self.settings.password_min_length:
			raise ValidationError(
				f"Password must be at least {self.settings.password_min_length} characters"
			)

	async def register(self, payload: RegisterRequest) -> tuple[User, str]:
		self._check_password_strength(payload.password)

		email = payload.email.strip().lower()
		username = payload.username.strip()
		existing = await self.db.execute(
			select(User.email, User.username).where(
				or_(func.lower(User.email) == email, func.lower(User.username) == username.lower())
			)
		)
		row = existing.first()
		if row is not None:
			field_name = "email" if row.email.lower() == email else "username"
			raise ConflictError(f"An account with this {field_name} already exists")

		user = User(
			username=username,
			email=email,
			password_hash=hash_password(payload.password),
			role=UserRoleEnum.member,
		)
		user.profile = Profile(**_profile_values(payload))
		self.db.add(user)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ConflictError("An account with this email or username already exists") from exc
		await self.db.refresh(user)

		logger.info("user_registered", user_id=str(user.id))
		await self.email_service.send_welcome(user.email, payload.name)
		return user, create_session_token(str(user.id), user.role)

	async def login(self, identifier: str, password: str) -> tuple[User, str]:
		"""Authenticate by email or username; the failure message never says which part was wrong."""
		normalized = identifier.strip().lower()
		row = await self.db.execute(
			select(User).where(
				or_(func.lower(User.email) == normalized, func.lower(User.username) == normalized)
			)
		)
		user = row.scalar_one_or_none()
		if user is None or not verify_password(password, user.password_hash):
			raise AuthenticationError("Invalid credentials", code="invalid_credentials")
		return user, create_session_token(str(user.id), user.role)

	async def change_password(self, user: User, current_password: str, new_password: str) -> None:
		if not verify_password(current_password, user.password_hash):
			raise AuthenticationError("Current password is incorrect", code="invalid_credentials")
		self._check_password_strength(new_password)
		user.password_hash = hash_password(new_password)
		await self.db.flush()
		logger.info("password_changed", user_id=str(user.id))

	async def update_profile(self, user_id: uuid.UUID, payload: ProfileFields) -> User:
		row = await self.db.execute(select(User).where(User.id == user_id))
		user = row.scalar_one_or_none()
		if user is None:
			raise AuthenticationError("User no longer exists", code="user_invalid")
		values = _profile_values(payload)
		if user.profile is None:
			user.profile = Profile(**values)
		else:
			for field_name, value in values.items():
				setattr(user.profile, field_name, value)
		await self.db.flush()
		await self.db.refresh(user)
		return user

"""Pydantic schemas for registration, login and member profiles."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from greenhouse_hub.models.enums import MemberTypeEnum, UserRoleEnum

OTHER = "Other"


class ProfileFields(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	phone: str = Field(min_length=1, max_length=64)
	state: str = Field(min_length=1, max_length=64)
	county: str | None = Field(default=None, max_length=128)
	employer: str | None = Field(default=None, max_length=255)
	job_title: str | None = Field(default=None, max_length=255)
	farm_type: str | None = Field(default=None, max_length=128)
	other_farm_type: str | None = Field(default=None, max_length=255)
	member_type: MemberTypeEnum = MemberTypeEnum.grower
	greenhouse_role: str | None = Field(default=None, max_length=128)
	crop_types: list[str] = Field(default_factory=list, max_length=50)
	other_crop: str | None = Field(default=None, max_length=255)
	gh_size: str | None = Field(default=None, max_length=64)
	production_method: str | None = Field(default=None, max_length=128)
	supp_lighting: str | None = Field(default=None, max_length=128)
	climate_control: list[str] | None = Field(default=None, max_length=50)

	@model_validator(mode="after")
	def _validate_grower_fields(self) -> "ProfileFields":
		if self.member_type == MemberTypeEnum.grower and not (self.county or "").strip():
			raise ValueError("county is required for grower members")
		if OTHER in self.crop_types and not (self.other_crop or "").strip():
			raise ValueError("other_crop is required when crop_types includes Other")
		if self.farm_type == OTHER and not (self.other_farm_type or "").strip():
			raise ValueError("other_farm_type is required when farm_type is Other")
		if self.climate_control is not None and len(self.climate_control) == 0:
			raise ValueError("climate_control must not be an empty list")
		return self


class RegisterRequest(ProfileFields):
	username: str = Field(min_length=3, max_length=64, pattern=r"^[A-Za-z0-9_.-]+$")
	email: EmailStr
	# length floor is enforced against settings by the auth service
	password: str = Field(min_length=1, max_length=256)


class LoginRequest(BaseModel):
	identifier: str = Field(min_length=1, max_length=320)
	password: str = Field(min_length=1, max_length=256)


class ChangePasswordRequest(BaseModel):
	current_password: str = Field(min_length=1, max_length=256)
	new_password: str = Field(min_length=1, max_length=256)


class ProfileUpdate(ProfileFields):
	pass


class ProfileRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	name: str
	phone: str
	state: str
	county: str | None = None
	employer: str | None = None
	job_title: str | None = None
	farm_type: str | None = None
	other_farm_type: str | None = None
	member_type: MemberTypeEnum
	greenhouse_role: str | None = None
	crop_types: list[str] = Field(default_factory=list)
	other_crop: str | None = None
	gh_size: str | None = None
	production_method: str | None = None
	supp_lighting: str | None = None
	climate_control: list[str] = Field(default_factory=list)


class UserRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	username: str
	email: str
	role: UserRoleEnum
	email_verified_at: datetime | None = None
	created_at: datetime
	profile: ProfileRead | None = None


class AuthResponse(BaseModel):
	user: UserRead
	message: str


class MessageResponse(BaseModel):
	message: str


class MemberPage(BaseModel):
	items: list[UserRead]
	total: int

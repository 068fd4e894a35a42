"""Pydantic schemas for grower challenges, the blog, feedback and contact forms."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from greenhouse_hub.models.enums import (
	ChallengeFlagEnum,
	FeedbackKindEnum,
	FeedbackStatusEnum,
	ResourceTypeEnum,
)

# ── Grower challenges ────────────────────────────────────────────────────────


class ChallengeCreate(BaseModel):
	category: str | None = Field(default=None, max_length=128)
	description: str = Field(min_length=1, max_length=10_000)


class ChallengeFlagUpdate(BaseModel):
	admin_flag: ChallengeFlagEnum


class ChallengeRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	category: str | None = None
	description: str
	admin_flag: ChallengeFlagEnum
	created_at: datetime


class ChallengeStats(BaseModel):
	total: int
	category_counts: dict[str, int] = Field(default_factory=dict)
	recent_count: int


# ── Blog ─────────────────────────────────────────────────────────────────────


class BlogPostCreate(BaseModel):
	title: str = Field(min_length=1, max_length=300)
	slug: str = Field(min_length=1, max_length=300, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
	excerpt: str | None = Field(default=None, max_length=2000)
	content_md: str = Field(min_length=1)
	published_at: datetime | None = None


class BlogPostUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=300)
	slug: str | None = Field(default=None, min_length=1, max_length=300, pattern=r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
	excerpt: str | None = Field(default=None, max_length=2000)
	content_md: str | None = Field(default=None, min_length=1)
	published_at: datetime | None = None


class BlogPostRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	title: str
	slug: str
	excerpt: str | None = None
	content_md: str
	published_at: datetime | None = None
	created_at: datetime
	updated_at: datetime


# ── Resource feedback ────────────────────────────────────────────────────────


class FeedbackCreate(BaseModel):
	kind: FeedbackKindEnum
	title: str | None = Field(default=None, max_length=500)
	resource_id: uuid.UUID | None = None
	resource_type: ResourceTypeEnum | None = None
	url: str | None = Field(default=None, max_length=2048)
	note: str = Field(min_length=1, max_length=5000)

	@model_validator(mode="after")
	def _validate_kind(self) -> "FeedbackCreate":
		if self.kind == FeedbackKindEnum.update_request and self.resource_id is None:
			raise ValueError("resource_id is required for update requests")
		if self.kind == FeedbackKindEnum.suggestion and not (self.title or "").strip():
			raise ValueError("title is required for suggestions")
		return self


class FeedbackStatusUpdate(BaseModel):
	status: FeedbackStatusEnum


class FeedbackRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	kind: FeedbackKindEnum
	title: str | None = None
	resource_id: uuid.UUID | None = None
	resource_type: ResourceTypeEnum | None = None
	url: str | None = None
	note: str
	status: FeedbackStatusEnum
	created_at: datetime


# ── Contact ──────────────────────────────────────────────────────────────────


class ContactRequest(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	email: EmailStr
	subject: str = Field(default="Website contact form", min_length=1, max_length=300)
	message: str = Field(min_length=1, max_length=10_000)

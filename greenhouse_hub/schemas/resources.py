"""Pydantic schemas for the resource library and favorites."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from greenhouse_hub.models.enums import ResourceTypeEnum


class ResourceCreate(BaseModel):
	title: str = Field(min_length=1, max_length=500)
	url: str = Field(min_length=1, max_length=2048)
	type: ResourceTypeEnum
	summary: str | None = Field(default=None, max_length=10_000)
	tags: list[str] = Field(default_factory=list, max_length=100)
	data: dict[str, Any] = Field(default_factory=dict)
	quality_score: int | None = Field(default=None, ge=0, le=100)
	verified: bool = False


class ResourceUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=500)
	url: str | None = Field(default=None, min_length=1, max_length=2048)
	type: ResourceTypeEnum | None = None
	summary: str | None = Field(default=None, max_length=10_000)
	tags: list[str] | None = Field(default=None, max_length=100)
	data: dict[str, Any] | None = None
	quality_score: int | None = Field(default=None, ge=0, le=100)
	verified: bool | None = None


class ResourceRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	title: str
	url: str
	type: ResourceTypeEnum
	summary: str | None = None
	tags: list[str] = Field(default_factory=list)
	data: dict[str, Any] = Field(default_factory=dict)
	quality_score: int | None = None
	verified: bool = False
	created_at: datetime
	updated_at: datetime


class ResourcePage(BaseModel):
	items: list[ResourceRead]
	total: int
	next_cursor: str | None = Field(default=None, serialization_alias="nextCursor")


class FavoriteState(BaseModel):
	resource_id: uuid.UUID
	favorited: bool

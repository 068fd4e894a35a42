"""Pydantic schemas for forum posts, comments, votes and favorites."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from greenhouse_hub.models.enums import ContentStateEnum


class PostCreate(BaseModel):
	title: str = Field(min_length=1, max_length=300)
	content: str = Field(min_length=1, max_length=50_000)
	category: str | None = Field(default=None, max_length=64)
	tags: list[str] = Field(default_factory=list, max_length=20)
	attachments: list[str] = Field(default_factory=list, max_length=10)


class PostUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=300)
	content: str | None = Field(default=None, min_length=1, max_length=50_000)
	category: str | None = Field(default=None, max_length=64)
	tags: list[str] | None = Field(default=None, max_length=20)
	attachments: list[str] | None = Field(default=None, max_length=10)


class CommentCreate(BaseModel):
	content: str = Field(min_length=1, max_length=20_000)
	attachments: list[str] = Field(default_factory=list, max_length=10)


class CommentUpdate(BaseModel):
	content: str = Field(min_length=1, max_length=20_000)
	attachments: list[str] | None = Field(default=None, max_length=10)


class VoteRequest(BaseModel):
	value: Literal[-1, 1]


class AuthorRead(BaseModel):
	id: uuid.UUID
	username: str
	name: str | None = None
	state: str | None = None
	county: str | None = None


class CommentRead(BaseModel):
	id: uuid.UUID
	post_id: uuid.UUID
	author: AuthorRead | None = None
	content: str
	attachments: list[str] = Field(default_factory=list)
	state: ContentStateEnum
	score: int = 0
	viewer_vote: int | None = None
	created_at: datetime
	edited_at: datetime | None = None


class PostRead(BaseModel):
	id: uuid.UUID
	author: AuthorRead | None = None
	title: str
	content: str
	category: str | None = None
	tags: list[str] = Field(default_factory=list)
	attachments: list[str] = Field(default_factory=list)
	state: ContentStateEnum
	score: int = 0
	comment_count: int = 0
	viewer_vote: int | None = None
	is_favorite: bool = False
	created_at: datetime
	edited_at: datetime | None = None


class PostDetail(PostRead):
	comments: list[CommentRead] = Field(default_factory=list)


class PostList(BaseModel):
	items: list[PostRead]
	total: int


class VoteResult(BaseModel):
	entity_id: uuid.UUID
	score: int
	viewer_vote: int | None = None


class FavoriteResult(BaseModel):
	post_id: uuid.UUID
	favorited: bool


class UploadResult(BaseModel):
	url: str
	filename: str
	content_type: str
	size: int

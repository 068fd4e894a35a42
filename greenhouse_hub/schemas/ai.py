"""Pydantic schemas for the AI assistant endpoints."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class FindGrowerRequest(BaseModel):
	question: str = Field(min_length=3, max_length=2000)


class FindGrowerResponse(BaseModel):
	response: str


class AssessmentChatRequest(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	input: str = Field(min_length=1, max_length=4000)
	session_id: str | None = Field(default=None, alias="sessionId", max_length=128)

"""Pydantic schemas for the farm roadmap self assessment."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from greenhouse_hub.models.enums import (
	RecommendationLevelEnum,
	RecommendationTimeframeEnum,
	RoadmapCategoryEnum,
)


class AssessmentResponse(BaseModel):
	model_config = ConfigDict(populate_by_name=True)

	question_id: str = Field(alias="questionId", min_length=1, max_length=64)
	value: int | float | str
	category: RoadmapCategoryEnum


class RoadmapSubmit(BaseModel):
	responses: dict[str, AssessmentResponse] = Field(min_length=1, max_length=200)

	@field_validator("responses")
	@classmethod
	def _keys_match_question_ids(
		cls, value: dict[str, AssessmentResponse]
	) -> dict[str, AssessmentResponse]:
		for key, response in value.items():
			if key != response.question_id:
				raise ValueError(f"response key {key!r} does not match questionId {response.question_id!r}")
		return value


class AssessmentRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	user_id: uuid.UUID
	responses: dict
	created_at: datetime


class FarmProfileRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	assessment_id: uuid.UUID
	scores: dict[str, float]
	overall_score: float
	strengths: list[str]
	improvement_areas: list[str]
	created_at: datetime


class RecommendationRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	title: str
	description: str
	category: RoadmapCategoryEnum
	priority_level: RecommendationLevelEnum
	priority: int
	estimated_impact: RecommendationLevelEnum
	timeframe: RecommendationTimeframeEnum
	position: int


class RoadmapRead(BaseModel):
	assessment: AssessmentRead
	profile: FarmProfileRead
	recommendations: list[RecommendationRead]


# ── Assessment training data (admin) ─────────────────────────────────────────


def _clean_tags(value: list[str] | None) -> list[str] | None:
	if value is None:
		return None
	return [tag.strip() for tag in value if tag and tag.strip()]


class TrainingDataCreate(BaseModel):
	title: str = Field(min_length=1, max_length=300)
	content: str = Field(min_length=1, max_length=20_000)
	tags: list[str] = Field(default_factory=list, max_length=50)

	@field_validator("tags")
	@classmethod
	def _strip_tags(cls, value: list[str] | None) -> list[str] | None:
		return _clean_tags(value)


class TrainingDataUpdate(BaseModel):
	title: str | None = Field(default=None, min_length=1, max_length=300)
	content: str | None = Field(default=None, min_length=1, max_length=20_000)
	tags: list[str] | None = Field(default=None, max_length=50)

	@field_validator("tags")
	@classmethod
	def _strip_tags(cls, value: list[str] | None) -> list[str] | None:
		return _clean_tags(value)


class TrainingDataRead(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: uuid.UUID
	title: str
	content: str
	tags: list[str]
	created_at: datetime
	updated_at: datetime

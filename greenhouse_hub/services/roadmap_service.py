"""Farm roadmap persistence: assessments in, profile and recommendations out."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.errors import AuthorizationError, NotFoundError
from greenhouse_hub.models.roadmap import (
	AssessmentTrainingData,
	FarmAssessment,
	FarmProfile,
	FarmRecommendation,
)
from greenhouse_hub.schemas.roadmap import RoadmapSubmit, TrainingDataCreate, TrainingDataUpdate
from greenhouse_hub.services.roadmap_scoring import (
	LEVEL_RANK,
	calculate_farm_profile,
	generate_recommendations,
)

logger = structlog.get_logger("greenhouse_hub.roadmap")


@dataclass(slots=True)
class RoadmapResult:
	assessment: FarmAssessment
	profile: FarmProfile
	recommendations: list[FarmRecommendation]


def ranked(recommendations: list[FarmRecommendation]) -> list[FarmRecommendation]:
	"""Highest priority first; equal priorities keep their generation order."""
	return sorted(recommendations, key=lambda item: (-item.priority, item.position))


class RoadmapService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def submit(self, user_id: uuid.UUID, payload: RoadmapSubmit) -> RoadmapResult:
		responses = {
			question_id: response.model_dump(mode="json", by_alias=True)
			for question_id, response in payload.responses.items()
		}
		assessment = FarmAssessment(user_id=user_id, responses=responses)
		self.db.add(assessment)
		await self.db.flush()
		await self.db.refresh(assessment)
		return await self._build(assessment)

	async def latest(self, user_id: uuid.UUID) -> RoadmapResult:
		row = await self.db.execute(
			select(FarmProfile)
			.where(FarmProfile.user_id == user_id)
			.order_by(FarmProfile.created_at.desc())
			.limit(1)
		)
		profile = row.scalar_one_or_none()
		if profile is None:
			raise NotFoundError("No farm roadmap has been submitted yet")
		assessment = await self._get_assessment(profile.assessment_id)
		return RoadmapResult(
			assessment=assessment,
			profile=profile,
			recommendations=ranked(list(profile.recommendations)),
		)

	async def recompute(self, user_id: uuid.UUID, assessment_id: uuid.UUID) -> RoadmapResult:
		"""Drop the derived profile for a stored assessment and score it again."""
		assessment = await self._get_assessment(assessment_id)
		if assessment.user_id != user_id:
			raise AuthorizationError("Only the member who submitted an assessment may recompute it")

		row = await self.db.execute(
			select(FarmProfile).where(FarmProfile.assessment_id == assessment.id)
		)
		existing = row.scalar_one_or_none()
		if existing is not None:
			await self.db.delete(existing)
			await self.db.flush()
		return await self._build(assessment)

	async def _get_assessment(self, assessment_id: uuid.UUID) -> FarmAssessment:
		row = await self.db.execute(select(FarmAssessment).where(FarmAssessment.id == assessment_id))
		assessment = row.scalar_one_or_none()
		if assessment is None:
			raise NotFoundError(f"Assessment {assessment_id} not found")
		return assessment

	async def _build(self, assessment: FarmAssessment) -> RoadmapResult:
		# position is the rank after the priority/impact sort
		computed = calculate_farm_profile(assessment.responses)
		generated = generate_recommendations(computed, assessment.responses)

		recommendations = [
			FarmRecommendation(
				title=item.title,
				description=item.description,
				category=item.category,
				priority_level=item.priority,
				priority=LEVEL_RANK[item.priority],
				estimated_impact=item.estimated_impact,
				timeframe=item.timeframe,
				position=index,
			)
			for index, item in enumerate(generated)
		]
		profile = FarmProfile(
			assessment_id=assessment.id,
			user_id=assessment.user_id,
			scores=dict(computed.scores),
			overall_score=computed.overall_score,
			strengths=list(computed.strengths),
			improvement_areas=list(computed.improvement_areas),
			recommendations=recommendations,
		)
		self.db.add(profile)
		await self.db.flush()
		await self.db.refresh(profile)

		logger.info(
			"roadmap_scored",
			assessment_id=str(assessment.id),
			overall_score=round(computed.overall_score, 2),
			recommendations=len(recommendations),
		)
		return RoadmapResult(assessment=assessment, profile=profile, recommendations=ranked(recommendations))


class TrainingDataService:
	"""Admin CRUD over the assessment chat's reference material."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_all(self) -> list[AssessmentTrainingData]:
		rows = await self.db.execute(
			select(AssessmentTrainingData).order_by(AssessmentTrainingData.created_at.desc())
		)
		return list(rows.scalars().all())

	async def _get(self, item_id: uuid.UUID) -> AssessmentTrainingData:
		row = await self.db.execute(
			select(AssessmentTrainingData).where(AssessmentTrainingData.id == item_id)
		)
		item = row.scalar_one_or_none()
		if item is None:
			raise NotFoundError(f"Training data {item_id} not found")
		return item

	async def create(self, payload: TrainingDataCreate) -> AssessmentTrainingData:
		item = AssessmentTrainingData(**payload.model_dump())
		self.db.add(item)
		await self.db.flush()
		await self.db.refresh(item)
		logger.info("training_data_created", training_data_id=str(item.id), tags=len(item.tags))
		return item

	async def update(self, item_id: uuid.UUID, payload: TrainingDataUpdate) -> AssessmentTrainingData:
		item = await self._get(item_id)
		for field_name, value in payload.model_dump(exclude_unset=True).items():
			if value is None:
				continue
			setattr(item, field_name, value)
		await self.db.flush()
		await self.db.refresh(item)
		return item

	async def delete(self, item_id: uuid.UUID) -> None:
		item = await self._get(item_id)
		await self.db.delete(item)
		await self.db.flush()

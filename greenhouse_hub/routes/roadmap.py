"""Farm roadmap self assessment and the admin-managed assessment training data."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_admin, require_member
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.schemas.roadmap import (
	AssessmentRead,
	FarmProfileRead,
	RecommendationRead,
	RoadmapRead,
	RoadmapSubmit,
	TrainingDataCreate,
	TrainingDataRead,
	TrainingDataUpdate,
)
from greenhouse_hub.services.roadmap_service import RoadmapResult, RoadmapService, TrainingDataService

router = APIRouter(prefix="/farm-roadmap", tags=["farm-roadmap"])
admin_router = APIRouter(prefix="/admin/assessment-training", tags=["admin"])


def _to_roadmap_read(result: RoadmapResult) -> RoadmapRead:
	return RoadmapRead(
		assessment=AssessmentRead.model_validate(result.assessment),
		profile=FarmProfileRead.model_validate(result.profile),
		recommendations=[RecommendationRead.model_validate(item) for item in result.recommendations],
	)


@router.post("/submit", response_model=RoadmapRead, status_code=status.HTTP_201_CREATED)
async def submit_assessment(
	payload: RoadmapSubmit,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> RoadmapRead:
	try:
		result = await RoadmapService(db).submit(current_user.id, payload)
	except Exception as exc:
		raise map_error(exc, "Assessment could not be scored") from exc
	return _to_roadmap_read(result)


@router.get("/latest", response_model=RoadmapRead)
async def latest_roadmap(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> RoadmapRead:
	try:
		result = await RoadmapService(db).latest(current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc
	return _to_roadmap_read(result)


@router.post("/{assessment_id}/recompute", response_model=RoadmapRead)
async def recompute_roadmap(
	assessment_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> RoadmapRead:
	try:
		result = await RoadmapService(db).recompute(current_user.id, assessment_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return _to_roadmap_read(result)


# ── Assessment training data (admin) ────────────────────────────────────────


@admin_router.get("", response_model=list[TrainingDataRead])
async def list_training_data(
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> list[TrainingDataRead]:
	try:
		items = await TrainingDataService(db).list_all()
	except Exception as exc:
		raise map_error(exc, "Failed to fetch training data") from exc
	return [TrainingDataRead.model_validate(item) for item in items]


@admin_router.post("", response_model=TrainingDataRead, status_code=status.HTTP_201_CREATED)
async def create_training_data(
	payload: TrainingDataCreate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> TrainingDataRead:
	try:
		item = await TrainingDataService(db).create(payload)
	except Exception as exc:
		raise map_error(exc, "Failed to create training data") from exc
	return TrainingDataRead.model_validate(item)


@admin_router.put("/{item_id}", response_model=TrainingDataRead)
async def update_training_data(
	item_id: uuid.UUID,
	payload: TrainingDataUpdate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> TrainingDataRead:
	try:
		item = await TrainingDataService(db).update(item_id, payload)
	except Exception as exc:
		raise map_error(exc, "Failed to update training data") from exc
	return TrainingDataRead.model_validate(item)


@admin_router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_training_data(
	item_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> Response:
	try:
		await TrainingDataService(db).delete(item_id)
	except Exception as exc:
		raise map_error(exc, "Failed to delete training data") from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)

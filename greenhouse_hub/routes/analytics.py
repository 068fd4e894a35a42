"""Client telemetry ingestion and the admin analytics dashboard."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import get_optional_user, require_admin
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.schemas.analytics import AnalyticsBatch, AnalyticsIngestResult, AnalyticsSummary
from greenhouse_hub.services.analytics_service import AnalyticsService

router = APIRouter(prefix="/analytics", tags=["analytics"])
admin_router = APIRouter(prefix="/admin/analytics", tags=["admin"])


@router.post("", response_model=AnalyticsIngestResult, status_code=status.HTTP_202_ACCEPTED)
async def ingest_events(
	payload: AnalyticsBatch,
	request: Request,
	db: AsyncSession = Depends(get_db),
	current_user: User | None = Depends(get_optional_user),
) -> AnalyticsIngestResult:
	service = AnalyticsService(db, getattr(request.app.state, "redis", None))
	user_id = current_user.id if current_user is not None else None
	try:
		return await service.ingest(payload.events, user_id=user_id)
	except Exception as exc:
		raise map_error(exc, "Analytics ingestion failed") from exc


@admin_router.get("", response_model=AnalyticsSummary)
async def analytics_summary(
	request: Request,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> AnalyticsSummary:
	service = AnalyticsService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.summary()
	except Exception as exc:
		raise map_error(exc, "Analytics summary failed") from exc

"""Client telemetry ingestion (best-effort) and the admin analytics summary."""

from __future__ import annotations

import json
import uuid
from datetime import UTC, date, datetime, timedelta
from typing import Any

import pydantic
import structlog
from redis.asyncio import Redis
from sqlalchemy import cast, func, insert, select
from sqlalchemy import Date as SqlDate
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import ValidationError
from greenhouse_hub.models.community import AnalyticsEvent
from greenhouse_hub.schemas.analytics import (
	AnalyticsEventIn,
	AnalyticsIngestResult,
	AnalyticsSummary,
	DailyCount,
)

logger = structlog.get_logger("greenhouse_hub.analytics")

SUMMARY_DAYS = 30
SUMMARY_CACHE_KEY = "analytics:summary:v1"
SUMMARY_CACHE_SECONDS = 60


def validate_batch(raw_events: list[dict[str, Any]], batch_max: int) -> list[AnalyticsEventIn]:
	"""Reject oversized batches and unknown event kinds before anything is stored."""
	if not raw_events:
		raise ValidationError("events must contain at least one event")
	if len(raw_events) > batch_max:
		raise ValidationError(f"At most {batch_max} events may be sent per batch")
	events: list[AnalyticsEventIn] = []
	for index, raw in enumerate(raw_events):
		try:
			events.append(AnalyticsEventIn.model_validate(raw))
		except pydantic.ValidationError as exc:
			first = exc.errors()[0]
			location = ".".join(str(part) for part in first.get("loc", ()))
			raise ValidationError(f"events[{index}].{location}: {first.get('msg')}") from exc
	return events


class AnalyticsService:
	def __init__(self, db: AsyncSession, redis_client: Redis | None = None):
		self.db = db
		self.redis_client = redis_client
		self.settings = get_settings()

	async def ingest(
		self,
		raw_events: list[dict[str, Any]],
		user_id: uuid.UUID | None = None,
		now: datetime | None = None,
	) -> AnalyticsIngestResult:
		"""Validate then store; a storage failure is logged and reported, never raised."""
		events = validate_batch(raw_events, self.settings.analytics_batch_max)
		received_at = now or datetime.now(UTC)
		rows = [
			{
				"user_id": user_id,
				"session_id": event.session_id,
				"event_type": event.event_type,
				"tab": event.tab,
				"resource_id": event.resource_id,
				"payload": event.payload,
				"occurred_at": event.timestamp or received_at,
			}
			for event in events
		]
		try:
			async with self.db.begin_nested():
				await self.db.execute(insert(AnalyticsEvent), rows)
		except SQLAlchemyError as exc:
			logger.warning("analytics_ingest_failed", count=len(rows), error=str(exc))
			return AnalyticsIngestResult(accepted=len(rows), stored=False)
		return AnalyticsIngestResult(accepted=len(rows), stored=True)

	async def summary(self, today: date | None = None) -> AnalyticsSummary:
		if self.redis_client is not None:
			cached = await self.redis_client.get(SUMMARY_CACHE_KEY)
			if cached is not None:
				payload = json.loads(cached)
				payload["cached"] = True
				return AnalyticsSummary.model_validate(payload)

		day_zero = (today or datetime.now(UTC).date()) - timedelta(days=SUMMARY_DAYS - 1)
		total = int((await self.db.execute(select(func.count()).select_from(AnalyticsEvent))).scalar_one())
		by_type = await self.db.execute(
			select(AnalyticsEvent.event_type, func.count()).group_by(AnalyticsEvent.event_type)
		)
		by_tab = await self.db.execute(
			select(AnalyticsEvent.tab, func.count())
			.where(AnalyticsEvent.tab.is_not(None))
			.group_by(AnalyticsEvent.tab)
		)
		event_day = cast(AnalyticsEvent.occurred_at, SqlDate)
		daily = await self.db.execute(
			select(event_day.label("day"), func.count())
			.where(AnalyticsEvent.occurred_at >= day_zero)
			.group_by(event_day)
			.order_by(event_day)
		)

		summary = AnalyticsSummary(
			total_events=total,
			events_by_type={str(kind): int(count) for kind, count in by_type.all()},
			events_by_tab={str(tab): int(count) for tab, count in by_tab.all()},
			daily_events=[DailyCount(day=day, count=int(count)) for day, count in daily.all()],
			generated_at=datetime.now(UTC),
		)
		if self.redis_client is not None:
			await self.redis_client.setex(
				SUMMARY_CACHE_KEY,
				SUMMARY_CACHE_SECONDS,
				summary.model_dump_json(exclude={"cached"}),
			)
		return summary

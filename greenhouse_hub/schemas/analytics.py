"""Pydantic schemas for client telemetry ingestion and the admin summary."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from greenhouse_hub.models.enums import AnalyticsEventTypeEnum


class AnalyticsEventIn(BaseModel):
	"""One client event; field names follow the browser tracker's camelCase."""

	model_config = ConfigDict(populate_by_name=True, extra="ignore")

	event_type: AnalyticsEventTypeEnum = Field(alias="eventType")
	session_id: str | None = Field(default=None, alias="sessionId", max_length=128)
	tab: str | None = Field(default=None, max_length=64)
	resource_id: uuid.UUID | None = Field(default=None, alias="resourceId")
	payload: dict[str, Any] = Field(default_factory=dict)
	timestamp: datetime | None = None


class AnalyticsBatch(BaseModel):
	"""Raw envelope; events are validated one by one by the ingestion service."""

	events: list[dict[str, Any]] = Field(default_factory=list)


class AnalyticsIngestResult(BaseModel):
	accepted: int
	stored: bool


class DailyCount(BaseModel):
	day: date
	count: int


class AnalyticsSummary(BaseModel):
	total_events: int
	events_by_type: dict[str, int] = Field(default_factory=dict)
	events_by_tab: dict[str, int] = Field(default_factory=dict)
	daily_events: list[DailyCount] = Field(default_factory=list)
	cached: bool = False
	generated_at: datetime

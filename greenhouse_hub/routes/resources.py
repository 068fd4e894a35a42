"""Resource library search, detail, admin catalog maintenance and member favorites."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_admin, require_member
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.models.enums import ResourceSortEnum, ResourceTypeEnum
from greenhouse_hub.schemas.resources import (
	FavoriteState,
	ResourceCreate,
	ResourcePage,
	ResourceRead,
	ResourceUpdate,
)
from greenhouse_hub.services.resource_query import ResourceQuery, ResourceQueryEngine, parse_filters
from greenhouse_hub.services.resource_service import ResourceService

router = APIRouter(prefix="/resources", tags=["resources"])
admin_router = APIRouter(prefix="/admin/resources", tags=["admin"])
favorites_router = APIRouter(prefix="/favorites", tags=["resources"])


@router.get("", response_model=ResourcePage, response_model_by_alias=True)
async def search_resources(
	type: ResourceTypeEnum | None = Query(default=None),
	q: str | None = Query(default=None, max_length=200),
	filters: str | None = Query(default=None, max_length=4000, description="JSON object of facet filters"),
	sort: ResourceSortEnum = Query(default=ResourceSortEnum.relevance),
	cursor: str | None = Query(default=None, max_length=1000),
	limit: int | None = Query(default=None, ge=1, le=100),
	db: AsyncSession = Depends(get_db),
) -> ResourcePage:
	try:
		query = ResourceQuery(
			today=datetime.now(UTC).date(),
			resource_type=type,
			q=q,
			filters=parse_filters(filters),
			sort=sort,
			cursor=cursor,
			limit=limit,
		)
		result = await ResourceQueryEngine(db).search(query)
	except Exception as exc:
		raise map_error(exc, "Resource search failed") from exc
	return ResourcePage(
		items=[ResourceRead.model_validate(item) for item in result.items],
		total=result.total,
		next_cursor=result.next_cursor,
	)


@router.get("/{resource_id}", response_model=ResourceRead)
async def get_resource(
	resource_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
) -> ResourceRead:
	try:
		resource = await ResourceService(db).get_resource(resource_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return ResourceRead.model_validate(resource)


# ── Admin catalog ───────────────────────────────────────────────────────────


@admin_router.post("", response_model=ResourceRead, status_code=status.HTTP_201_CREATED)
async def create_resource(
	payload: ResourceCreate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> ResourceRead:
	try:
		resource = await ResourceService(db).create_resource(payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return ResourceRead.model_validate(resource)


@admin_router.put("/{resource_id}", response_model=ResourceRead)
async def update_resource(
	resource_id: uuid.UUID,
	payload: ResourceUpdate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> ResourceRead:
	try:
		resource = await ResourceService(db).update_resource(resource_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return ResourceRead.model_validate(resource)


@admin_router.delete("/{resource_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_resource(
	resource_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> Response:
	try:
		await ResourceService(db).delete_resource(resource_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Favorites ───────────────────────────────────────────────────────────────


@favorites_router.get("", response_model=ResourcePage, response_model_by_alias=True)
async def list_favorites(
	limit: int = Query(default=20, ge=1, le=100),
	offset: int = Query(default=0, ge=0),
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> ResourcePage:
	try:
		items, total = await ResourceService(db).list_favorites(current_user.id, limit=limit, offset=offset)
	except Exception as exc:
		raise map_error(exc) from exc
	return ResourcePage(items=[ResourceRead.model_validate(item) for item in items], total=total)


@favorites_router.post("/{resource_id}", response_model=FavoriteState)
async def add_favorite(
	resource_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> FavoriteState:
	try:
		favorited = await ResourceService(db).add_favorite(current_user.id, resource_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return FavoriteState(resource_id=resource_id, favorited=favorited)


@favorites_router.delete("/{resource_id}", response_model=FavoriteState)
async def remove_favorite(
	resource_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> FavoriteState:
	try:
		favorited = await ResourceService(db).remove_favorite(current_user.id, resource_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return FavoriteState(resource_id=resource_id, favorited=favorited)

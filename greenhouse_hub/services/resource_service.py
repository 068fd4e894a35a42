"""Resource catalog CRUD and member favorites."""

from __future__ import annotations

import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.errors import NotFoundError
from greenhouse_hub.models.resources import Favorite, Resource
from greenhouse_hub.schemas.resources import ResourceCreate, ResourceUpdate


class ResourceService:
	"""Admin catalog maintenance plus the per-member favorites set."""

	def __init__(self, db: AsyncSession):
		self.db = db

	async def get_resource(self, resource_id: uuid.UUID) -> Resource:
		row = await self.db.execute(select(Resource).where(Resource.id == resource_id))
		resource = row.scalar_one_or_none()
		if resource is None:
			raise NotFoundError(f"Resource {resource_id} not found")
		return resource

	async def create_resource(self, payload: ResourceCreate) -> Resource:
		resource = Resource(
			title=payload.title,
			url=payload.url,
			type=payload.type,
			summary=payload.summary,
			tags=list(payload.tags),
			data=dict(payload.data),
			quality_score=payload.quality_score,
			verified=payload.verified,
		)
		self.db.add(resource)
		await self.db.flush()
		await self.db.refresh(resource)
		return resource

	async def update_resource(self, resource_id: uuid.UUID, payload: ResourceUpdate) -> Resource:
		resource = await self.get_resource(resource_id)
		for field_name, value in payload.model_dump(exclude_unset=True).items():
			if value is None and field_name in {"title", "url", "type", "tags", "data", "verified"}:
				continue
			setattr(resource, field_name, value)
		await self.db.flush()
		await self.db.refresh(resource)
		return resource

	async def delete_resource(self, resource_id: uuid.UUID) -> None:
		"""Hard delete; favorites cascade and analytics rows lose their reference."""
		resource = await self.get_resource(resource_id)
		await self.db.delete(resource)
		await self.db.flush()

	# ── Favorites ────────────────────────────────────────────────────────

	async def add_favorite(self, user_id: uuid.UUID, resource_id: uuid.UUID) -> bool:
		await self.get_resource(resource_id)
		stmt = (
			insert(Favorite)
			.values(id=uuid.uuid4(), user_id=user_id, resource_id=resource_id)
			.on_conflict_do_nothing(constraint="uq_favorites_user_resource")
		)
		await self.db.execute(stmt)
		return True

	async def remove_favorite(self, user_id: uuid.UUID, resource_id: uuid.UUID) -> bool:
		await self.db.execute(
			delete(Favorite).where(
				Favorite.user_id == user_id,
				Favorite.resource_id == resource_id,
			)
		)
		return False

	async def list_favorites(
		self,
		user_id: uuid.UUID,
		*,
		limit: int,
		offset: int = 0,
	) -> tuple[list[Resource], int]:
		total_row = await self.db.execute(
			select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id)
		)
		total = int(total_row.scalar_one())
		rows = await self.db.execute(
			select(Resource)
			.join(Favorite, Favorite.resource_id == Resource.id)
			.where(Favorite.user_id == user_id)
			.order_by(Favorite.created_at.desc(), Favorite.id.asc())
			.limit(limit)
			.offset(offset)
		)
		return list(rows.scalars().all()), total

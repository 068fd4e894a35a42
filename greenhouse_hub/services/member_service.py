"""Member directory search."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from greenhouse_hub.auth.models import Profile, User
from greenhouse_hub.models.enums import MemberTypeEnum


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
	"""Directory fields shared with members and the find-a-grower assistant."""

	name: str
	state: str
	farm_type: str | None
	employer: str | None
	job_title: str | None


class MemberService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def search_members(
		self,
		*,
		q: str | None = None,
		state: str | None = None,
		farm_type: str | None = None,
		limit: int = 50,
		offset: int = 0,
	) -> tuple[list[User], int]:
		conditions = []
		if q and q.strip():
			pattern = f"%{q.strip()}%"
			conditions.append(
				or_(
					Profile.name.ilike(pattern),
					User.email.ilike(pattern),
					User.username.ilike(pattern),
				)
			)
		if state:
			conditions.append(Profile.state == state)
		if farm_type:
			conditions.append(Profile.farm_type == farm_type)

		base = select(User).outerjoin(Profile, Profile.user_id == User.id).where(*conditions)
		total_row = await self.db.execute(
			select(func.count()).select_from(base.order_by(None).subquery())
		)
		rows = await self.db.execute(
			base.options(joinedload(User.profile))
			.order_by(User.created_at.desc(), User.id.asc())
			.limit(limit)
			.offset(offset)
		)
		return list(rows.unique().scalars().all()), int(total_row.scalar_one())

	async def directory(self, limit: int) -> list[DirectoryEntry]:
		"""Most recent grower profiles, trimmed to the public directory fields."""
		rows = await self.db.execute(
			select(Profile)
			.where(Profile.member_type == MemberTypeEnum.grower)
			.order_by(Profile.created_at.desc())
			.limit(limit)
		)
		return [
			DirectoryEntry(
				name=profile.name,
				state=profile.state,
				farm_type=profile.other_farm_type or profile.farm_type,
				employer=profile.employer,
				job_title=profile.job_title,
			)
			for profile in rows.scalars().all()
		]

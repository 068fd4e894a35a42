"""Grower challenges, blog posts, resource feedback and the contact form."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.errors import ConflictError, NotFoundError
from greenhouse_hub.models.community import BlogPost, GrowerChallenge
from greenhouse_hub.models.enums import ChallengeFlagEnum, FeedbackStatusEnum
from greenhouse_hub.models.resources import ResourceFeedback
from greenhouse_hub.schemas.community import (
	BlogPostCreate,
	BlogPostUpdate,
	ChallengeCreate,
	ChallengeStats,
	ContactRequest,
	FeedbackCreate,
)
from greenhouse_hub.services.email_service import EmailService

RECENT_CHALLENGE_DAYS = 30


class ChallengeService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def submit(self, user_id: uuid.UUID, payload: ChallengeCreate) -> GrowerChallenge:
		challenge = GrowerChallenge(
			user_id=user_id,
			category=(payload.category or "").strip() or None,
			description=payload.description,
			admin_flag=ChallengeFlagEnum.none,
		)
		self.db.add(challenge)
		await self.db.flush()
		await self.db.refresh(challenge)
		return challenge

	async def list_all(self) -> list[GrowerChallenge]:
		rows = await self.db.execute(
			select(GrowerChallenge).order_by(GrowerChallenge.created_at.desc())
		)
		return list(rows.scalars().all())

	async def set_flag(self, challenge_id: uuid.UUID, flag: ChallengeFlagEnum) -> GrowerChallenge:
		row = await self.db.execute(select(GrowerChallenge).where(GrowerChallenge.id == challenge_id))
		challenge = row.scalar_one_or_none()
		if challenge is None:
			raise NotFoundError(f"Challenge {challenge_id} not found")
		challenge.admin_flag = flag
		await self.db.flush()
		await self.db.refresh(challenge)
		return challenge

	async def stats(self, now: datetime | None = None) -> ChallengeStats:
		"""Total, per-category counts (uncategorised omitted), and the last 30 days."""
		cutoff = (now or datetime.now(UTC)) - timedelta(days=RECENT_CHALLENGE_DAYS)
		total = int((await self.db.execute(select(func.count()).select_from(GrowerChallenge))).scalar_one())
		category_rows = await self.db.execute(
			select(GrowerChallenge.category, func.count())
			.where(GrowerChallenge.category.is_not(None))
			.group_by(GrowerChallenge.category)
		)
		recent = int(
			(
				await self.db.execute(
					select(func.count())
					.select_from(GrowerChallenge)
					.where(GrowerChallenge.created_at >= cutoff)
				)
			).scalar_one()
		)
		return ChallengeStats(
			total=total,
			category_counts={str(category): int(count) for category, count in category_rows.all()},
			recent_count=recent,
		)


class BlogService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def list_published(self, now: datetime | None = None) -> list[BlogPost]:
		moment = now or datetime.now(UTC)
		rows = await self.db.execute(
			select(BlogPost)
			.where(BlogPost.published_at.is_not(None), BlogPost.published_at <= moment)
			.order_by(BlogPost.published_at.desc())
		)
		return list(rows.scalars().all())

	async def get_by_slug(self, slug: str, now: datetime | None = None) -> BlogPost:
		moment = now or datetime.now(UTC)
		row = await self.db.execute(select(BlogPost).where(BlogPost.slug == slug))
		post = row.scalar_one_or_none()
		if post is None or post.published_at is None or post.published_at > moment:
			raise NotFoundError(f"Blog post '{slug}' not found")
		return post

	async def _get(self, post_id: uuid.UUID) -> BlogPost:
		row = await self.db.execute(select(BlogPost).where(BlogPost.id == post_id))
		post = row.scalar_one_or_none()
		if post is None:
			raise NotFoundError(f"Blog post {post_id} not found")
		return post

	async def create(self, payload: BlogPostCreate) -> BlogPost:
		post = BlogPost(**payload.model_dump())
		self.db.add(post)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ConflictError(f"Slug '{payload.slug}' is already in use") from exc
		await self.db.refresh(post)
		return post

	async def update(self, post_id: uuid.UUID, payload: BlogPostUpdate) -> BlogPost:
		post = await self._get(post_id)
		for field_name, value in payload.model_dump(exclude_unset=True).items():
			if value is None and field_name in {"title", "slug", "content_md"}:
				continue
			setattr(post, field_name, value)
		try:
			await self.db.flush()
		except IntegrityError as exc:
			raise ConflictError("Slug is already in use") from exc
		await self.db.refresh(post)
		return post

	async def delete(self, post_id: uuid.UUID) -> None:
		post = await self._get(post_id)
		await self.db.delete(post)
		await self.db.flush()


class FeedbackService:
	def __init__(self, db: AsyncSession, email_service: EmailService | None = None):
		self.db = db
		self.email_service = email_service or EmailService()

	async def submit(self, user_id: uuid.UUID, payload: FeedbackCreate) -> ResourceFeedback:
		feedback = ResourceFeedback(
			user_id=user_id,
			kind=payload.kind,
			title=payload.title,
			resource_id=payload.resource_id,
			resource_type=payload.resource_type,
			url=payload.url,
			note=payload.note,
			status=FeedbackStatusEnum.pending,
		)
		self.db.add(feedback)
		await self.db.flush()
		await self.db.refresh(feedback)
		# a failed forward raises, and the request rollback discards the row
		await self.email_service.forward_to_admin(
			subject=f"New resource {payload.kind.value.replace('_', ' ')}",
			text=f"{payload.title or payload.resource_id}\n\n{payload.note}",
		)
		return feedback

	async def list_all(self, status: FeedbackStatusEnum | None = None) -> list[ResourceFeedback]:
		stmt = select(ResourceFeedback).order_by(ResourceFeedback.created_at.desc())
		if status is not None:
			stmt = stmt.where(ResourceFeedback.status == status)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())

	async def set_status(self, feedback_id: uuid.UUID, status: FeedbackStatusEnum) -> ResourceFeedback:
		row = await self.db.execute(select(ResourceFeedback).where(ResourceFeedback.id == feedback_id))
		feedback = row.scalar_one_or_none()
		if feedback is None:
			raise NotFoundError(f"Feedback {feedback_id} not found")
		feedback.status = status
		await self.db.flush()
		await self.db.refresh(feedback)
		return feedback

	async def contact(self, payload: ContactRequest) -> None:
		"""Forward a contact form to the admin inbox; provider failure propagates."""
		await self.email_service.forward_to_admin(
			subject=f"[Contact] {payload.subject}",
			text=f"From: {payload.name} <{payload.email}>\n\n{payload.message}",
			reply_to=str(payload.email),
		)

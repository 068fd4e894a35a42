"""Forum posts and comments, the vote ledger, and post favorites.

Votes live in one ledger keyed by (user, entity type, entity id); casting a
vote is an upsert, so repeating a vote is a no-op and changing it overwrites
the previous value.  The returned score is read by a second statement after
the upsert.  Another member's vote can land between the two, so the score is
a display value and may already be one vote stale.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import structlog
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from greenhouse_hub.auth.models import Profile, User
from greenhouse_hub.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from greenhouse_hub.models.enums import ContentStateEnum, VoteEntityEnum
from greenhouse_hub.models.forum import TOMBSTONE, ForumComment, ForumPost, PostFavorite, Vote
from greenhouse_hub.schemas.forum import (
	AuthorRead,
	CommentCreate,
	CommentRead,
	CommentUpdate,
	PostCreate,
	PostDetail,
	PostRead,
	PostUpdate,
)

logger = structlog.get_logger("greenhouse_hub.forum")


@dataclass(frozen=True, slots=True)
class PostFilters:
	search: str | None = None
	state: str | None = None
	county: str | None = None
	category: str | None = None


def _author(user: User | None, profile: Profile | None) -> AuthorRead | None:
	if user is None:
		return None
	return AuthorRead(
		id=user.id,
		username=user.username,
		name=profile.name if profile is not None else None,
		state=profile.state if profile is not None else None,
		county=profile.county if profile is not None else None,
	)


def _score_subquery(entity_type: VoteEntityEnum) -> Any:
	return (
		select(Vote.entity_id.label("entity_id"), func.sum(Vote.value).label("score"))
		.where(Vote.entity_type == entity_type)
		.group_by(Vote.entity_id)
		.subquery()
	)


def ensure_owner(author_id: uuid.UUID, acting_user_id: uuid.UUID, noun: str) -> None:
	if author_id != acting_user_id:
		raise AuthorizationError(f"Only the author can modify this {noun}")


class ForumService:
	def __init__(self, db: AsyncSession):
		self.db = db

	# ── Posts ─────────────────────────────────────────────────────────────

	def _post_rows_statement(self, viewer_id: uuid.UUID) -> Any:
		scores = _score_subquery(VoteEntityEnum.post)
		comment_counts = (
			select(ForumComment.post_id.label("post_id"), func.count().label("comment_count"))
			.where(ForumComment.state == ContentStateEnum.active)
			.group_by(ForumComment.post_id)
			.subquery()
		)
		viewer_vote = aliased(Vote)
		favorite = aliased(PostFavorite)
		return (
			select(
				ForumPost,
				User,
				Profile,
				func.coalesce(scores.c.score, 0).label("score"),
				func.coalesce(comment_counts.c.comment_count, 0).label("comment_count"),
				viewer_vote.value.label("viewer_vote"),
				favorite.id.is_not(None).label("is_favorite"),
			)
			.outerjoin(User, User.id == ForumPost.user_id)
			.outerjoin(Profile, Profile.user_id == ForumPost.user_id)
			.outerjoin(scores, scores.c.entity_id == ForumPost.id)
			.outerjoin(comment_counts, comment_counts.c.post_id == ForumPost.id)
			.outerjoin(
				viewer_vote,
				and_(
					viewer_vote.entity_type == VoteEntityEnum.post,
					viewer_vote.entity_id == ForumPost.id,
					viewer_vote.user_id == viewer_id,
				),
			)
			.outerjoin(
				favorite,
				and_(favorite.post_id == ForumPost.id, favorite.user_id == viewer_id),
			)
		)

	@staticmethod
	def _post_read(row: Any) -> PostRead:
		post: ForumPost = row[0]
		return PostRead(
			id=post.id,
			author=_author(row[1], row[2]),
			title=post.title,
			content=post.content,
			category=post.category,
			tags=list(post.tags or []),
			attachments=list(post.attachments or []),
			state=post.state,
			score=int(row.score),
			comment_count=int(row.comment_count),
			viewer_vote=row.viewer_vote,
			is_favorite=bool(row.is_favorite),
			created_at=post.created_at,
			edited_at=post.edited_at,
		)

	@staticmethod
	def _listing_conditions(filters: PostFilters) -> list[Any]:
		conditions: list[Any] = [ForumPost.state == ContentStateEnum.active]
		if filters.state:
			conditions.append(Profile.state == filters.state)
		if filters.county:
			conditions.append(Profile.county == filters.county)
		if filters.category:
			conditions.append(ForumPost.category == filters.category)
		if filters.search and filters.search.strip():
			pattern = f"%{filters.search.strip()}%"
			conditions.append(
				or_(
					ForumPost.title.ilike(pattern),
					ForumPost.content.ilike(pattern),
					func.array_to_string(ForumPost.tags, " ").ilike(pattern),
				)
			)
		return conditions

	async def list_posts(
		self,
		viewer_id: uuid.UUID,
		filters: PostFilters,
		*,
		limit: int = 50,
		offset: int = 0,
	) -> tuple[list[PostRead], int]:
		"""Active posts only, newest first."""
		conditions = self._listing_conditions(filters)
		total_row = await self.db.execute(
			select(func.count())
			.select_from(ForumPost)
			.outerjoin(Profile, Profile.user_id == ForumPost.user_id)
			.where(*conditions)
		)
		rows = await self.db.execute(
			self._post_rows_statement(viewer_id)
			.where(*conditions)
			.order_by(ForumPost.created_at.desc(), ForumPost.id.asc())
			.limit(limit)
			.offset(offset)
		)
		return [self._post_read(row) for row in rows.all()], int(total_row.scalar_one())

	async def list_favorite_posts(self, viewer_id: uuid.UUID) -> list[PostRead]:
		rows = await self.db.execute(
			self._post_rows_statement(viewer_id)
			.join(PostFavorite, PostFavorite.post_id == ForumPost.id)
			.where(PostFavorite.user_id == viewer_id)
			.order_by(PostFavorite.created_at.desc())
		)
		return [self._post_read(row) for row in rows.all()]

	async def get_post(self, post_id: uuid.UUID, viewer_id: uuid.UUID) -> PostDetail:
		"""Fetch by id, deleted or not, with the full (tombstoned) comment thread."""
		row = (
			await self.db.execute(self._post_rows_statement(viewer_id).where(ForumPost.id == post_id))
		).first()
		if row is None:
			raise NotFoundError(f"Post {post_id} not found")
		comments = await self._comment_reads(post_id, viewer_id)
		return PostDetail(**self._post_read(row).model_dump(), comments=comments)

	async def _get_post_row(self, post_id: uuid.UUID) -> ForumPost:
		row = await self.db.execute(select(ForumPost).where(ForumPost.id == post_id))
		post = row.scalar_one_or_none()
		if post is None:
			raise NotFoundError(f"Post {post_id} not found")
		return post

	async def create_post(self, user_id: uuid.UUID, payload: PostCreate) -> ForumPost:
		post = ForumPost(
			user_id=user_id,
			title=payload.title,
			content=payload.content,
			category=payload.category,
			tags=list(payload.tags),
			attachments=list(payload.attachments),
			state=ContentStateEnum.active,
		)
		self.db.add(post)
		await self.db.flush()
		await self.db.refresh(post)
		return post

	async def update_post(
		self, user_id: uuid.UUID, post_id: uuid.UUID, payload: PostUpdate
	) -> ForumPost:
		post = await self._get_post_row(post_id)
		ensure_owner(post.user_id, user_id, "post")
		if post.is_deleted:
			raise ConflictError("Deleted posts cannot be edited")
		changes = payload.model_dump(exclude_unset=True)
		for field_name, value in changes.items():
			if value is None and field_name in {"title", "content", "tags", "attachments"}:
				continue
			setattr(post, field_name, value)
		post.edited_at = datetime.now(UTC)
		await self.db.flush()
		await self.db.refresh(post)
		return post

	async def delete_post(self, user_id: uuid.UUID, post_id: uuid.UUID) -> ForumPost:
		"""Soft delete: tombstone the content and keep the row, its comments and votes."""
		post = await self._get_post_row(post_id)
		ensure_owner(post.user_id, user_id, "post")
		post.state = ContentStateEnum.deleted
		post.content = TOMBSTONE
		await self.db.flush()
		logger.info("forum_post_deleted", post_id=str(post_id), user_id=str(user_id))
		return post

	# ── Comments ──────────────────────────────────────────────────────────

	async def _comment_reads(self, post_id: uuid.UUID, viewer_id: uuid.UUID) -> list[CommentRead]:
		scores = _score_subquery(VoteEntityEnum.comment)
		viewer_vote = aliased(Vote)
		rows = await self.db.execute(
			select(
				ForumComment,
				User,
				Profile,
				func.coalesce(scores.c.score, 0).label("score"),
				viewer_vote.value.label("viewer_vote"),
			)
			.outerjoin(User, User.id == ForumComment.user_id)
			.outerjoin(Profile, Profile.user_id == ForumComment.user_id)
			.outerjoin(scores, scores.c.entity_id == ForumComment.id)
			.outerjoin(
				viewer_vote,
				and_(
					viewer_vote.entity_type == VoteEntityEnum.comment,
					viewer_vote.entity_id == ForumComment.id,
					viewer_vote.user_id == viewer_id,
				),
			)
			.where(ForumComment.post_id == post_id)
			.order_by(ForumComment.created_at.asc(), ForumComment.id.asc())
		)
		return [
			CommentRead(
				id=comment.id,
				post_id=comment.post_id,
				author=_author(user, profile),
				content=comment.content,
				attachments=list(comment.attachments or []),
				state=comment.state,
				score=int(score),
				viewer_vote=vote,
				created_at=comment.created_at,
				edited_at=comment.edited_at,
			)
			for comment, user, profile, score, vote in rows.all()
		]

	async def _get_comment(self, post_id: uuid.UUID, comment_id: uuid.UUID) -> ForumComment:
		row = await self.db.execute(
			select(ForumComment).where(
				ForumComment.id == comment_id,
				ForumComment.post_id == post_id,
			)
		)
		comment = row.scalar_one_or_none()
		if comment is None:
			raise NotFoundError(f"Comment {comment_id} not found")
		return comment

	async def create_comment(
		self, user_id: uuid.UUID, post_id: uuid.UUID, payload: CommentCreate
	) -> ForumComment:
		post = await self._get_post_row(post_id)
		if post.is_deleted:
			raise ConflictError("Cannot comment on a deleted post")
		comment = ForumComment(
			post_id=post.id,
			user_id=user_id,
			content=payload.content,
			attachments=list(payload.attachments),
			state=ContentStateEnum.active,
		)
		self.db.add(comment)
		await self.db.flush()
		await self.db.refresh(comment)
		return comment

	async def update_comment(
		self,
		user_id: uuid.UUID,
		post_id: uuid.UUID,
		comment_id: uuid.UUID,
		payload: CommentUpdate,
	) -> ForumComment:
		comment = await self._get_comment(post_id, comment_id)
		ensure_owner(comment.user_id, user_id, "comment")
		if comment.is_deleted:
			raise ConflictError("Deleted comments cannot be edited")
		comment.content = payload.content
		if payload.attachments is not None:
			comment.attachments = list(payload.attachments)
		comment.edited_at = datetime.now(UTC)
		await self.db.flush()
		await self.db.refresh(comment)
		return comment

	async def delete_comment(
		self, user_id: uuid.UUID, post_id: uuid.UUID, comment_id: uuid.UUID
	) -> ForumComment:
		comment = await self._get_comment(post_id, comment_id)
		ensure_owner(comment.user_id, user_id, "comment")
		comment.state = ContentStateEnum.deleted
		comment.content = TOMBSTONE
		await self.db.flush()
		return comment

	# ── Votes ─────────────────────────────────────────────────────────────

	async def _ensure_votable(self, entity_type: VoteEntityEnum, entity_id: uuid.UUID) -> None:
		model = ForumPost if entity_type == VoteEntityEnum.post else ForumComment
		row = await self.db.execute(select(model.state).where(model.id == entity_id))
		state = row.scalar_one_or_none()
		if state is None:
			raise NotFoundError(f"{entity_type.value.capitalize()} {entity_id} not found")
		if state == ContentStateEnum.deleted:
			raise ConflictError(f"Cannot vote on a deleted {entity_type.value}")

	async def _upsert_vote(
		self,
		user_id: uuid.UUID,
		entity_type: VoteEntityEnum,
		entity_id: uuid.UUID,
		value: int,
	) -> None:
		stmt = insert(Vote).values(
			id=uuid.uuid4(),
			user_id=user_id,
			entity_type=entity_type,
			entity_id=entity_id,
			value=value,
		)
		stmt = stmt.on_conflict_do_update(
			constraint="uq_votes_user_entity",
			set_={"value": stmt.excluded.value, "updated_at": func.now()},
		)
		await self.db.execute(stmt)

	async def _delete_vote(
		self, user_id: uuid.UUID, entity_type: VoteEntityEnum, entity_id: uuid.UUID
	) -> None:
		await self.db.execute(
			delete(Vote).where(
				Vote.user_id == user_id,
				Vote.entity_type == entity_type,
				Vote.entity_id == entity_id,
			)
		)

	async def score(self, entity_type: VoteEntityEnum, entity_id: uuid.UUID) -> int:
		row = await self.db.execute(
			select(func.coalesce(func.sum(Vote.value), 0)).where(
				Vote.entity_type == entity_type,
				Vote.entity_id == entity_id,
			)
		)
		return int(row.scalar_one())

	async def vote(
		self,
		user_id: uuid.UUID,
		entity_type: VoteEntityEnum,
		entity_id: uuid.UUID,
		value: int,
	) -> int:
		if value not in (-1, 1):
			raise ValidationError("Vote value must be 1 or -1")
		await self._ensure_votable(entity_type, entity_id)
		await self._upsert_vote(user_id, entity_type, entity_id, value)
		return await self.score(entity_type, entity_id)

	async def remove_vote(
		self, user_id: uuid.UUID, entity_type: VoteEntityEnum, entity_id: uuid.UUID
	) -> int:
		"""Idempotent; removing a vote that does not exist is not an error."""
		await self._delete_vote(user_id, entity_type, entity_id)
		return await self.score(entity_type, entity_id)

	# ── Favorites ─────────────────────────────────────────────────────────

	async def toggle_favorite(self, user_id: uuid.UUID, post_id: uuid.UUID) -> bool:
		"""Flip the viewer's favorite flag on a post and return the new state."""
		await self._get_post_row(post_id)
		removed = await self.db.execute(
			delete(PostFavorite)
			.where(PostFavorite.user_id == user_id, PostFavorite.post_id == post_id)
			.returning(PostFavorite.id)
		)
		if removed.first() is not None:
			return False
		await self.db.execute(
			insert(PostFavorite)
			.values(id=uuid.uuid4(), user_id=user_id, post_id=post_id)
			.on_conflict_do_nothing(constraint="uq_post_favorites_user_post")
		)
		return True

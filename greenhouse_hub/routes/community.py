"""Grower challenges, blog, resource feedback and the public contact form."""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_admin, require_member
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.models.enums import FeedbackStatusEnum
from greenhouse_hub.schemas.auth import MessageResponse
from greenhouse_hub.schemas.community import (
	BlogPostCreate,
	BlogPostRead,
	BlogPostUpdate,
	ChallengeCreate,
	ChallengeFlagUpdate,
	ChallengeRead,
	ChallengeStats,
	ContactRequest,
	FeedbackCreate,
	FeedbackRead,
	FeedbackStatusUpdate,
)
from greenhouse_hub.services.community_service import BlogService, ChallengeService, FeedbackService

router = APIRouter(tags=["community"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


# ── Grower challenges ───────────────────────────────────────────────────────


@router.post("/challenges", response_model=ChallengeRead, status_code=status.HTTP_201_CREATED)
async def submit_challenge(
	payload: ChallengeCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> ChallengeRead:
	try:
		challenge = await ChallengeService(db).submit(current_user.id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return ChallengeRead.model_validate(challenge)


@admin_router.get("/challenges", response_model=list[ChallengeRead])
async def list_challenges(
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> list[ChallengeRead]:
	try:
		challenges = await ChallengeService(db).list_all()
	except Exception as exc:
		raise map_error(exc) from exc
	return [ChallengeRead.model_validate(item) for item in challenges]


@admin_router.get("/challenges/stats", response_model=ChallengeStats)
async def challenge_stats(
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> ChallengeStats:
	try:
		return await ChallengeService(db).stats()
	except Exception as exc:
		raise map_error(exc) from exc


@admin_router.patch("/challenges/{challenge_id}/flag", response_model=ChallengeRead)
async def flag_challenge(
	challenge_id: uuid.UUID,
	payload: ChallengeFlagUpdate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> ChallengeRead:
	try:
		challenge = await ChallengeService(db).set_flag(challenge_id, payload.admin_flag)
	except Exception as exc:
		raise map_error(exc) from exc
	return ChallengeRead.model_validate(challenge)


# ── Blog ────────────────────────────────────────────────────────────────────


@router.get("/blog", response_model=list[BlogPostRead])
async def list_blog_posts(db: AsyncSession = Depends(get_db)) -> list[BlogPostRead]:
	try:
		posts = await BlogService(db).list_published()
	except Exception as exc:
		raise map_error(exc) from exc
	return [BlogPostRead.model_validate(post) for post in posts]


@router.get("/blog/{slug}", response_model=BlogPostRead)
async def get_blog_post(slug: str, db: AsyncSession = Depends(get_db)) -> BlogPostRead:
	try:
		post = await BlogService(db).get_by_slug(slug)
	except Exception as exc:
		raise map_error(exc) from exc
	return BlogPostRead.model_validate(post)


@admin_router.post("/blog", response_model=BlogPostRead, status_code=status.HTTP_201_CREATED)
async def create_blog_post(
	payload: BlogPostCreate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> BlogPostRead:
	try:
		post = await BlogService(db).create(payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return BlogPostRead.model_validate(post)


@admin_router.put("/blog/{post_id}", response_model=BlogPostRead)
async def update_blog_post(
	post_id: uuid.UUID,
	payload: BlogPostUpdate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> BlogPostRead:
	try:
		post = await BlogService(db).update(post_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return BlogPostRead.model_validate(post)


@admin_router.delete("/blog/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blog_post(
	post_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> Response:
	try:
		await BlogService(db).delete(post_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Feedback & contact ──────────────────────────────────────────────────────


@router.post("/feedback", response_model=FeedbackRead, status_code=status.HTTP_201_CREATED)
async def submit_feedback(
	payload: FeedbackCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> FeedbackRead:
	try:
		feedback = await FeedbackService(db).submit(current_user.id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return FeedbackRead.model_validate(feedback)


@admin_router.get("/feedback", response_model=list[FeedbackRead])
async def list_feedback(
	status_filter: FeedbackStatusEnum | None = Query(default=None, alias="status"),
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> list[FeedbackRead]:
	try:
		items = await FeedbackService(db).list_all(status_filter)
	except Exception as exc:
		raise map_error(exc) from exc
	return [FeedbackRead.model_validate(item) for item in items]


@admin_router.patch("/feedback/{feedback_id}", response_model=FeedbackRead)
async def set_feedback_status(
	feedback_id: uuid.UUID,
	payload: FeedbackStatusUpdate,
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> FeedbackRead:
	try:
		feedback = await FeedbackService(db).set_status(feedback_id, payload.status)
	except Exception as exc:
		raise map_error(exc) from exc
	return FeedbackRead.model_validate(feedback)


@router.post("/contact", response_model=MessageResponse)
async def contact(
	payload: ContactRequest,
	db: AsyncSession = Depends(get_db),
) -> MessageResponse:
	try:
		await FeedbackService(db).contact(payload)
	except Exception as exc:
		raise map_error(exc, "Message could not be sent") from exc
	return MessageResponse(message="Thank you for contacting us. We will get back to you soon.")

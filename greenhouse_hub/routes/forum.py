"""Forum posts, comments, votes, favorites and attachment upload."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_member
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.models.enums import VoteEntityEnum
from greenhouse_hub.schemas.forum import (
	CommentCreate,
	CommentRead,
	CommentUpdate,
	FavoriteResult,
	PostCreate,
	PostDetail,
	PostList,
	PostRead,
	PostUpdate,
	UploadResult,
	VoteRequest,
	VoteResult,
)
from greenhouse_hub.services.forum_service import ForumService, PostFilters
from greenhouse_hub.services.upload_service import UploadService

router = APIRouter(prefix="/forum", tags=["forum"])


def _comment_read(comment: Any, viewer_vote: int | None = None) -> CommentRead:
	return CommentRead(
		id=comment.id,
		post_id=comment.post_id,
		content=comment.content,
		attachments=list(comment.attachments or []),
		state=comment.state,
		viewer_vote=viewer_vote,
		created_at=comment.created_at,
		edited_at=comment.edited_at,
	)


# ── Posts ───────────────────────────────────────────────────────────────────


@router.get("/posts", response_model=PostList)
async def list_posts(
	search: str | None = Query(default=None, max_length=200),
	state: str | None = Query(default=None, max_length=64),
	county: str | None = Query(default=None, max_length=128),
	category: str | None = Query(default=None, max_length=64),
	limit: int = Query(default=50, ge=1, le=100),
	offset: int = Query(default=0, ge=0),
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> PostList:
	filters = PostFilters(search=search, state=state, county=county, category=category)
	try:
		items, total = await ForumService(db).list_posts(
			current_user.id, filters, limit=limit, offset=offset
		)
	except Exception as exc:
		raise map_error(exc) from exc
	return PostList(items=items, total=total)


@router.post("/posts", response_model=PostDetail, status_code=status.HTTP_201_CREATED)
async def create_post(
	payload: PostCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> PostDetail:
	service = ForumService(db)
	try:
		post = await service.create_post(current_user.id, payload)
		return await service.get_post(post.id, current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/favorites", response_model=list[PostRead])
async def list_favorite_posts(
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> list[PostRead]:
	try:
		return await ForumService(db).list_favorite_posts(current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.get("/posts/{post_id}", response_model=PostDetail)
async def get_post(
	post_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> PostDetail:
	try:
		return await ForumService(db).get_post(post_id, current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.put("/posts/{post_id}", response_model=PostDetail)
async def update_post(
	post_id: uuid.UUID,
	payload: PostUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> PostDetail:
	service = ForumService(db)
	try:
		await service.update_post(current_user.id, post_id, payload)
		return await service.get_post(post_id, current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc


@router.delete("/posts/{post_id}", response_model=PostDetail)
async def delete_post(
	post_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> PostDetail:
	service = ForumService(db)
	try:
		await service.delete_post(current_user.id, post_id)
		return await service.get_post(post_id, current_user.id)
	except Exception as exc:
		raise map_error(exc) from exc


# ── Votes & favorites ───────────────────────────────────────────────────────


@router.post("/posts/{post_id}/vote", response_model=VoteResult)
async def vote_post(
	post_id: uuid.UUID,
	payload: VoteRequest,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> VoteResult:
	try:
		score = await ForumService(db).vote(current_user.id, VoteEntityEnum.post, post_id, payload.value)
	except Exception as exc:
		raise map_error(exc) from exc
	return VoteResult(entity_id=post_id, score=score, viewer_vote=payload.value)


@router.delete("/posts/{post_id}/vote", response_model=VoteResult)
async def remove_post_vote(
	post_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> VoteResult:
	try:
		score = await ForumService(db).remove_vote(current_user.id, VoteEntityEnum.post, post_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return VoteResult(entity_id=post_id, score=score, viewer_vote=None)


@router.post("/posts/{post_id}/favorite", response_model=FavoriteResult)
async def toggle_post_favorite(
	post_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> FavoriteResult:
	try:
		favorited = await ForumService(db).toggle_favorite(current_user.id, post_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return FavoriteResult(post_id=post_id, favorited=favorited)


@router.post("/comments/{comment_id}/vote", response_model=VoteResult)
async def vote_comment(
	comment_id: uuid.UUID,
	payload: VoteRequest,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> VoteResult:
	try:
		score = await ForumService(db).vote(
			current_user.id, VoteEntityEnum.comment, comment_id, payload.value
		)
	except Exception as exc:
		raise map_error(exc) from exc
	return VoteResult(entity_id=comment_id, score=score, viewer_vote=payload.value)


@router.delete("/comments/{comment_id}/vote", response_model=VoteResult)
async def remove_comment_vote(
	comment_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> VoteResult:
	try:
		score = await ForumService(db).remove_vote(current_user.id, VoteEntityEnum.comment, comment_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return VoteResult(entity_id=comment_id, score=score, viewer_vote=None)


# ── Comments ────────────────────────────────────────────────────────────────


@router.post(
	"/posts/{post_id}/comments",
	response_model=CommentRead,
	status_code=status.HTTP_201_CREATED,
)
async def create_comment(
	post_id: uuid.UUID,
	payload: CommentCreate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> CommentRead:
	try:
		comment = await ForumService(db).create_comment(current_user.id, post_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return _comment_read(comment)


@router.put("/posts/{post_id}/comments/{comment_id}", response_model=CommentRead)
async def update_comment(
	post_id: uuid.UUID,
	comment_id: uuid.UUID,
	payload: CommentUpdate,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> CommentRead:
	try:
		comment = await ForumService(db).update_comment(current_user.id, post_id, comment_id, payload)
	except Exception as exc:
		raise map_error(exc) from exc
	return _comment_read(comment)


@router.delete("/posts/{post_id}/comments/{comment_id}", response_model=CommentRead)
async def delete_comment(
	post_id: uuid.UUID,
	comment_id: uuid.UUID,
	db: AsyncSession = Depends(get_db),
	current_user: User = Depends(require_member),
) -> CommentRead:
	try:
		comment = await ForumService(db).delete_comment(current_user.id, post_id, comment_id)
	except Exception as exc:
		raise map_error(exc) from exc
	return _comment_read(comment)


# ── Attachments ─────────────────────────────────────────────────────────────


@router.post("/upload", response_model=UploadResult, status_code=status.HTTP_201_CREATED)
async def upload_attachment(
	file: UploadFile = File(...),
	_user: User = Depends(require_member),
) -> UploadResult:
	try:
		stored = await UploadService().store_upload(file)
	except Exception as exc:
		raise map_error(exc, "Upload failed") from exc
	finally:
		await file.close()
	return UploadResult(
		url=stored.url,
		filename=stored.filename,
		content_type=stored.content_type,
		size=stored.size,
	)

"""Admin member directory."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from greenhouse_hub.auth.dependencies import require_admin
from greenhouse_hub.auth.models import User
from greenhouse_hub.database import get_db
from greenhouse_hub.errors import map_error
from greenhouse_hub.schemas.auth import MemberPage, UserRead
from greenhouse_hub.services.member_service import MemberService

router = APIRouter(prefix="/admin/members", tags=["admin"])


@router.get("", response_model=MemberPage)
async def search_members(
	q: str | None = Query(default=None, max_length=200),
	state: str | None = Query(default=None, max_length=64),
	farm_type: str | None = Query(default=None, max_length=128),
	limit: int = Query(default=50, ge=1, le=200),
	offset: int = Query(default=0, ge=0),
	db: AsyncSession = Depends(get_db),
	_user: User = Depends(require_admin),
) -> MemberPage:
	try:
		users, total = await MemberService(db).search_members(
			q=q, state=state, farm_type=farm_type, limit=limit, offset=offset
		)
	except Exception as exc:
		raise map_error(exc) from exc
	return MemberPage(items=[UserRead.model_validate(user) for user in users], total=total)

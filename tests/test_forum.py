from __future__ import annotations

from types import SimpleNamespace
from uuid import UUID, uuid4

import pytest
from httpx import AsyncClient
from sqlalchemy.dialects import postgresql

from greenhouse_hub.errors import AuthorizationError, ConflictError
from greenhouse_hub.models.enums import ContentStateEnum, VoteEntityEnum
from greenhouse_hub.models.forum import TOMBSTONE
from greenhouse_hub.schemas.forum import CommentCreate
from greenhouse_hub.services.forum_service import ForumService


def _post(owner: UUID, **overrides: object) -> SimpleNamespace:
	fields: dict[str, object] = {
		"id": uuid4(),
		"user_id": owner,
		"title": "Whitefly pressure",
		"content": "Anyone else seeing whitefly this early?",
		"state": ContentStateEnum.active,
		"is_deleted": False,
		"edited_at": None,
	}
	fields.update(overrides)
	return SimpleNamespace(**fields)


@pytest.fixture
def vote_ledger(monkeypatch: pytest.MonkeyPatch) -> dict[tuple[UUID, VoteEntityEnum, UUID], int]:
	"""In-memory stand-in for the votes table keyed like its unique constraint."""
	ledger: dict[tuple[UUID, VoteEntityEnum, UUID], int] = {}

	async def ensure_votable(self: ForumService, _entity_type: object, _entity_id: object) -> None:
		return None

	async def upsert(self: ForumService, user_id: UUID, entity_type: VoteEntityEnum, entity_id: UUID, value: int) -> None:
		ledger[(user_id, entity_type, entity_id)] = value

	async def delete(self: ForumService, user_id: UUID, entity_type: VoteEntityEnum, entity_id: UUID) -> None:
		ledger.pop((user_id, entity_type, entity_id), None)

	async def score(self: ForumService, entity_type: VoteEntityEnum, entity_id: UUID) -> int:
		return sum(value for (_, kind, target), value in ledger.items() if kind == entity_type and target == entity_id)

	monkeypatch.setattr(ForumService, "_ensure_votable", ensure_votable)
	monkeypatch.setattr(ForumService, "_upsert_vote", upsert)
	monkeypatch.setattr(ForumService, "_delete_vote", delete)
	monkeypatch.setattr(ForumService, "score", score)
	return ledger


@pytest.mark.asyncio
async def test_repeated_vote_counts_once(fake_db_session, vote_ledger) -> None:
	service = ForumService(fake_db_session)
	voter, other, post_id = uuid4(), uuid4(), uuid4()

	assert await service.vote(voter, VoteEntityEnum.post, post_id, 1) == 1
	assert await service.vote(voter, VoteEntityEnum.post, post_id, 1) == 1
	assert await service.vote(other, VoteEntityEnum.post, post_id, 1) == 2
	# changing a vote replaces it
	assert await service.vote(voter, VoteEntityEnum.post, post_id, -1) == 0


@pytest.mark.asyncio
async def test_removing_a_vote_is_idempotent(fake_db_session, vote_ledger) -> None:
	service = ForumService(fake_db_session)
	voter, comment_id = uuid4(), uuid4()

	await service.vote(voter, VoteEntityEnum.comment, comment_id, -1)
	assert await service.remove_vote(voter, VoteEntityEnum.comment, comment_id) == 0
	assert await service.remove_vote(voter, VoteEntityEnum.comment, comment_id) == 0
	assert vote_ledger == {}


@pytest.mark.asyncio
async def test_vote_upsert_targets_the_ledger_constraint(fake_db_session) -> None:
	await ForumService(fake_db_session)._upsert_vote(uuid4(), VoteEntityEnum.post, uuid4(), 1)

	statement = fake_db_session.execute.call_args.args[0]
	sql = str(statement.compile(dialect=postgresql.dialect()))

	assert "ON CONFLICT ON CONSTRAINT uq_votes_user_entity DO UPDATE" in sql


@pytest.mark.asyncio
async def test_delete_post_keeps_row_and_writes_tombstone(fake_db_session, fake_result) -> None:
	owner = uuid4()
	post = _post(owner)
	fake_db_session.execute.return_value = fake_result(scalar=post)

	deleted = await ForumService(fake_db_session).delete_post(owner, post.id)

	assert deleted is post
	assert post.state == ContentStateEnum.deleted
	assert post.content == TOMBSTONE
	assert post.title == "Whitefly pressure"
	assert fake_db_session.deleted == []


@pytest.mark.asyncio
async def test_delete_post_by_other_member_is_forbidden(fake_db_session, fake_result) -> None:
	post = _post(uuid4())
	fake_db_session.execute.return_value = fake_result(scalar=post)

	with pytest.raises(AuthorizationError):
		await ForumService(fake_db_session).delete_post(uuid4(), post.id)
	assert post.state == ContentStateEnum.active


@pytest.mark.asyncio
async def test_comment_on_deleted_post_is_a_conflict(fake_db_session, fake_result) -> None:
	owner = uuid4()
	post = _post(owner, state=ContentStateEnum.deleted, is_deleted=True, content=TOMBSTONE)
	fake_db_session.execute.return_value = fake_result(scalar=post)

	with pytest.raises(ConflictError):
		await ForumService(fake_db_session).create_comment(owner, post.id, CommentCreate(content="late reply"))


@pytest.mark.asyncio
async def test_update_post_by_non_owner_returns_403(client: AsyncClient, fake_db_session, fake_result) -> None:
	post = _post(uuid4())
	fake_db_session.execute.return_value = fake_result(scalar=post)

	response = await client.put(f"/api/v1/forum/posts/{post.id}", json={"title": "Edited"})

	assert response.status_code == 403
	assert response.json()["detail"]["error"] == "forbidden"
	assert post.title == "Whitefly pressure"


@pytest.mark.asyncio
async def test_vote_on_deleted_post_returns_409(client: AsyncClient, fake_db_session, fake_result) -> None:
	fake_db_session.execute.return_value = fake_result(scalar=ContentStateEnum.deleted)

	response = await client.post(f"/api/v1/forum/posts/{uuid4()}/vote", json={"value": 1})

	assert response.status_code == 409
	assert response.json()["detail"]["error"] == "conflict"


@pytest.mark.asyncio
async def test_vote_value_must_be_plus_or_minus_one(client: AsyncClient) -> None:
	response = await client.post(f"/api/v1/forum/posts/{uuid4()}/vote", json={"value": 0})
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_vote_endpoint_reports_score(client: AsyncClient, vote_ledger) -> None:
	post_id = uuid4()

	first = await client.post(f"/api/v1/forum/posts/{post_id}/vote", json={"value": 1})
	again = await client.post(f"/api/v1/forum/posts/{post_id}/vote", json={"value": 1})

	assert first.status_code == 200
	assert again.json() == {"entity_id": str(post_id), "score": 1, "viewer_vote": 1}


@pytest.mark.asyncio
async def test_missing_post_returns_404(client: AsyncClient) -> None:
	response = await client.get(f"/api/v1/forum/posts/{uuid4()}")
	assert response.status_code == 404
	assert response.json()["detail"]["error"] == "not_found"


@pytest.mark.asyncio
async def test_forum_requires_member_role(client: AsyncClient, guest_user) -> None:
	from greenhouse_hub.auth.dependencies import get_current_user
	from greenhouse_hub.main import app

	async def _guest() -> object:
		return guest_user

	app.dependency_overrides[get_current_user] = _guest

	response = await client.get("/api/v1/forum/posts")
	assert response.status_code == 403

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from httpx import AsyncClient

from greenhouse_hub.errors import ExternalServiceError, NotFoundError
from greenhouse_hub.models.enums import ChallengeFlagEnum, FeedbackKindEnum
from greenhouse_hub.schemas.community import ChallengeCreate, FeedbackCreate
from greenhouse_hub.services.community_service import BlogService, ChallengeService, FeedbackService
from greenhouse_hub.services.email_service import EMAIL_UNAVAILABLE_MESSAGE, EmailService


def _challenge(**overrides: object) -> SimpleNamespace:
	fields: dict[str, object] = {
		"id": uuid4(),
		"user_id": uuid4(),
		"category": "Labor",
		"description": "Hard to find seasonal staff",
		"admin_flag": ChallengeFlagEnum.none,
		"created_at": datetime.now(UTC),
	}
	fields.update(overrides)
	return SimpleNamespace(**fields)


@pytest.mark.asyncio
async def test_challenge_blank_category_is_stored_as_none(fake_db_session) -> None:
	challenge = await ChallengeService(fake_db_session).submit(
		uuid4(), ChallengeCreate(category="   ", description="Energy costs doubled")
	)
	assert challenge.category is None
	assert challenge.admin_flag == ChallengeFlagEnum.none


@pytest.mark.asyncio
async def test_challenge_stats(fake_db_session, fake_result) -> None:
	fake_db_session.execute.side_effect = [
		fake_result(scalar=5),
		fake_result(rows=[("Labor", 3), ("Energy", 1)]),
		fake_result(scalar=2),
	]

	stats = await ChallengeService(fake_db_session).stats()

	assert stats.total == 5
	assert stats.category_counts == {"Labor": 3, "Energy": 1}
	assert stats.recent_count == 2


@pytest.mark.asyncio
async def test_admin_can_flag_challenge(admin_client: AsyncClient, fake_db_session, fake_result) -> None:
	challenge = _challenge()
	fake_db_session.execute.return_value = fake_result(scalar=challenge)

	response = await admin_client.patch(
		f"/api/v1/admin/challenges/{challenge.id}/flag",
		json={"admin_flag": "needs_follow_up"},
	)

	assert response.status_code == 200
	assert response.json()["admin_flag"] == "needs_follow_up"


@pytest.mark.asyncio
async def test_flag_rejects_unknown_value(admin_client: AsyncClient) -> None:
	response = await admin_client.patch(f"/api/v1/admin/challenges/{uuid4()}/flag", json={"admin_flag": "urgent"})
	assert response.status_code == 422


@pytest.mark.asyncio
async def test_unpublished_blog_post_is_hidden(fake_db_session, fake_result) -> None:
	future = datetime.now(UTC) + timedelta(days=3)
	fake_db_session.execute.return_value = fake_result(scalar=SimpleNamespace(slug="soon", published_at=future))

	with pytest.raises(NotFoundError):
		await BlogService(fake_db_session).get_by_slug("soon")


@pytest.mark.asyncio
async def test_blog_slug_lookup_404(client: AsyncClient) -> None:
	response = await client.get("/api/v1/blog/missing-post")
	assert response.status_code == 404


@pytest.mark.asyncio
async def test_blog_create_validates_slug(admin_client: AsyncClient) -> None:
	response = await admin_client.post(
		"/api/v1/admin/blog",
		json={"title": "Spring update", "slug": "Spring Update!", "content_md": "# Hello"},
	)
	assert response.status_code == 422


def test_update_request_requires_resource_id() -> None:
	with pytest.raises(ValueError):
		FeedbackCreate(kind=FeedbackKindEnum.update_request, note="Link is broken")


@pytest.mark.asyncio
async def test_feedback_is_forwarded_to_admin(fake_db_session) -> None:
	email = EmailService()
	email.forward_to_admin = AsyncMock()  # type: ignore[method-assign]
	payload = FeedbackCreate(kind=FeedbackKindEnum.suggestion, title="Add the state grant portal", note="See link")

	feedback = await FeedbackService(fake_db_session, email).submit(uuid4(), payload)

	assert feedback.title == "Add the state grant portal"
	email.forward_to_admin.assert_awaited_once()
	assert email.forward_to_admin.call_args.kwargs["subject"] == "New resource suggestion"


@pytest.mark.asyncio
async def test_contact_email_failure_returns_503(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	async def failing(self: EmailService, subject: str, text: str, reply_to: str | None = None) -> None:
		raise ExternalServiceError(EMAIL_UNAVAILABLE_MESSAGE)

	monkeypatch.setattr(EmailService, "forward_to_admin", failing)

	response = await client.post(
		"/api/v1/contact",
		json={"name": "Lee", "email": "lee@example.com", "message": "Do you offer memberships for students?"},
	)

	assert response.status_code == 503
	assert response.json()["detail"]["message"] == EMAIL_UNAVAILABLE_MESSAGE


@pytest.mark.asyncio
async def test_contact_forwards_with_reply_to(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
	forwarded = AsyncMock()
	monkeypatch.setattr(EmailService, "forward_to_admin", forwarded)

	response = await client.post(
		"/api/v1/contact",
		json={"name": "Lee", "email": "lee@example.com", "message": "Hello"},
	)

	assert response.status_code == 200
	assert forwarded.call_args.kwargs["reply_to"] == "lee@example.com"
	assert forwarded.call_args.kwargs["subject"] == "[Contact] Website contact form"


@pytest.mark.asyncio
async def test_contact_rejects_invalid_email(client: AsyncClient) -> None:
	response = await client.post("/api/v1/contact", json={"name": "Lee", "email": "not-an-email", "message": "Hi"})
	assert response.status_code == 422

"""Shared pytest fixtures — async test client, fake DB session, fake Redis, users."""

from __future__ import annotations

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from greenhouse_hub.auth.dependencies import get_current_user
from greenhouse_hub.database import get_db
from greenhouse_hub.main import app
from greenhouse_hub.models.enums import UserRoleEnum


class FakeResult:
	"""Stands in for a SQLAlchemy Result; ``rows`` are tuples or single objects."""

	def __init__(self, rows: list[Any] | None = None, scalar: Any = None) -> None:
		self.rows = rows or []
		self.scalar = scalar

	def scalar_one(self) -> Any:
		return self.scalar

	def scalar_one_or_none(self) -> Any:
		if self.scalar is not None:
			return self.scalar
		return self.rows[0] if self.rows else None

	def first(self) -> Any:
		return self.rows[0] if self.rows else None

	def all(self) -> list[Any]:
		return list(self.rows)

	def unique(self) -> FakeResult:
		return self

	def scalars(self) -> FakeResult:
		return self


class FakeAsyncSession:
	def __init__(self) -> None:
		self.added: list[Any] = []
		self.deleted: list[Any] = []
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock(return_value=FakeResult())
		self.flush = AsyncMock()
		self.refresh = AsyncMock()
		self.add = MagicMock(side_effect=self.added.append)
		self.nested_failure: Exception | None = None

	async def delete(self, instance: Any) -> None:
		self.deleted.append(instance)

	@asynccontextmanager
	async def begin_nested(self) -> AsyncGenerator[None, None]:
		yield
		if self.nested_failure is not None:
			raise self.nested_failure


class FakeRedis:
	def __init__(self) -> None:
		self.setex = AsyncMock()
		self.get = AsyncMock(return_value=None)
		self.ping = AsyncMock(return_value=True)
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value

	def reset_counters(self) -> None:
		self._counter.clear()


def make_user(role: UserRoleEnum, **overrides: Any) -> SimpleNamespace:
	fields: dict[str, Any] = {
		"id": uuid.uuid4(),
		"username": f"{role.value}-user",
		"email": f"{role.value}@test.local",
		"role": role,
		"password_hash": "",
		"email_verified_at": None,
		"created_at": datetime.now(UTC),
		"profile": None,
	}
	fields.update(overrides)
	return SimpleNamespace(**fields)


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_result() -> type[FakeResult]:
	return FakeResult


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def member_user() -> SimpleNamespace:
	return make_user(UserRoleEnum.member)


@pytest.fixture
def admin_user() -> SimpleNamespace:
	return make_user(UserRoleEnum.admin)


@pytest.fixture
def guest_user() -> SimpleNamespace:
	return make_user(UserRoleEnum.guest)


@asynccontextmanager
async def _test_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan
	app.state.redis = None

	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://test") as test_client:
			yield test_client
	finally:
		app.router.lifespan_context = original_lifespan
		app.dependency_overrides.clear()
		app.state.redis = None


@pytest.fixture
async def client(
	fake_db_session: FakeAsyncSession, member_user: SimpleNamespace
) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled, DB mocked and a signed-in member."""

	async def override_current_user() -> Any:
		return member_user

	async with _test_client(fake_db_session) as test_client:
		app.dependency_overrides[get_current_user] = override_current_user
		yield test_client


@pytest.fixture
async def admin_client(
	fake_db_session: FakeAsyncSession, admin_user: SimpleNamespace
) -> AsyncGenerator[AsyncClient, None]:
	async def override_current_user() -> Any:
		return admin_user

	async with _test_client(fake_db_session) as test_client:
		app.dependency_overrides[get_current_user] = override_current_user
		yield test_client


@pytest.fixture
async def auth_client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with DB override only (real auth dependencies active)."""
	async with _test_client(fake_db_session) as test_client:
		yield test_client


@pytest.fixture
def now_utc() -> datetime:
	return datetime.now(UTC)

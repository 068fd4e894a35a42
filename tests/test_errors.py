from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from greenhouse_hub import errors
from greenhouse_hub.errors import ConflictError, NotFoundError, map_error


@pytest.fixture
def error_logger(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
	logger = MagicMock()
	monkeypatch.setattr(errors, "logger", logger)
	return logger


def test_typed_errors_keep_their_message(error_logger: MagicMock) -> None:
	not_found = map_error(NotFoundError("Post 42 not found"))
	conflict = map_error(ConflictError("Slug is already in use"))

	assert not_found.status_code == 404
	assert not_found.detail == {"error": "not_found", "message": "Post 42 not found"}
	assert conflict.status_code == 409
	error_logger.error.assert_not_called()


def test_untyped_lookup_and_value_errors_hide_internal_text(error_logger: MagicMock) -> None:
	missing = map_error(KeyError("users.password_hash"))
	invalid = map_error(ValueError("invalid literal for int() with base 10: 'abc'"))

	assert missing.status_code == 404
	assert "password_hash" not in missing.detail["message"]
	assert invalid.status_code == 400
	assert "literal" not in invalid.detail["message"]
	assert error_logger.warning.call_count == 2


def test_unexpected_error_is_logged_with_traceback(error_logger: MagicMock) -> None:
	failure = RuntimeError("connection pool exhausted")

	mapped = map_error(failure, "Failed to fetch training data")

	assert mapped.status_code == 500
	assert mapped.detail == {"error": "internal_error", "message": "Failed to fetch training data"}
	error_logger.error.assert_called_once()
	assert error_logger.error.call_args.kwargs["exc_info"] is failure

from __future__ import annotations

from pathlib import Path

import pytest
from httpx import AsyncClient

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import ValidationError
from greenhouse_hub.services.upload_service import UploadService


@pytest.fixture
def upload_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
	target = tmp_path / "uploads"
	monkeypatch.setattr(get_settings(), "upload_dir", str(target))
	return target


@pytest.mark.asyncio
async def test_store_writes_unique_file(tmp_path: Path) -> None:
	service = UploadService(str(tmp_path))

	first = await service.store(b"\x89PNG data", "image/png", "leaf.png")
	second = await service.store(b"\x89PNG data", "image/png", "leaf.png")

	assert first.filename != second.filename
	assert first.url == f"/uploads/{first.filename}"
	assert (tmp_path / first.filename).read_bytes() == b"\x89PNG data"
	assert first.filename.endswith(".png")


@pytest.mark.asyncio
async def test_extension_comes_from_content_type(tmp_path: Path) -> None:
	stored = await UploadService(str(tmp_path)).store(b"video", "video/quicktime", None)
	assert stored.filename.endswith(".mov")


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["avatar.html", "logo.svg", "shell.php", "photo.PNG.html"])
async def test_client_filename_cannot_choose_extension(tmp_path: Path, name: str) -> None:
	stored = await UploadService(str(tmp_path)).store(b"<script>alert(1)</script>", "image/png", name)

	assert stored.filename.endswith(".png")
	assert [path.suffix for path in tmp_path.iterdir()] == [".png"]


def test_allowed_type_without_known_extension_is_rejected(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
	settings = get_settings()
	monkeypatch.setattr(settings, "upload_allowed_types", [*settings.upload_allowed_types, "image/svg+xml"])

	with pytest.raises(ValidationError) as excinfo:
		UploadService(str(tmp_path)).validate("image/svg+xml", 10)
	assert excinfo.value.code == "unsupported_media_type"


def test_validate_rejects_bad_type_and_size(tmp_path: Path) -> None:
	service = UploadService(str(tmp_path))

	with pytest.raises(ValidationError) as bad_type:
		service.validate("application/pdf", 10)
	assert bad_type.value.code == "unsupported_media_type"

	with pytest.raises(ValidationError) as too_big:
		service.validate("image/jpeg", get_settings().upload_max_bytes + 1)
	assert too_big.value.code == "file_too_large"

	with pytest.raises(ValidationError):
		service.validate("image/jpeg", 0)

	assert service.validate("image/JPEG; charset=binary", 10) == "image/jpeg"


@pytest.mark.asyncio
async def test_upload_endpoint_stores_attachment(client: AsyncClient, upload_dir: Path) -> None:
	response = await client.post(
		"/api/v1/forum/upload",
		files={"file": ("bench.html", b"\xff\xd8\xff jpeg", "image/jpeg")},
	)

	assert response.status_code == 201
	body = response.json()
	assert body["content_type"] == "image/jpeg"
	assert body["url"].startswith("/uploads/")
	assert body["filename"].endswith(".jpg")
	assert (upload_dir / body["filename"]).exists()


@pytest.mark.asyncio
async def test_upload_endpoint_rejects_unsupported_type(client: AsyncClient, upload_dir: Path) -> None:
	response = await client.post(
		"/api/v1/forum/upload",
		files={"file": ("notes.txt", b"plain text", "text/plain")},
	)

	assert response.status_code == 400
	assert response.json()["detail"]["error"] == "unsupported_media_type"
	assert not upload_dir.exists()


@pytest.mark.asyncio
async def test_upload_endpoint_rejects_oversized_file(
	client: AsyncClient, upload_dir: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
	monkeypatch.setattr(get_settings(), "upload_max_bytes", 16)

	response = await client.post(
		"/api/v1/forum/upload",
		files={"file": ("big.png", b"x" * 64, "image/png")},
	)

	assert response.status_code == 400
	assert response.json()["detail"]["error"] == "file_too_large"

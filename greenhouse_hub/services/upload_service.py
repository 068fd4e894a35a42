"""Forum attachment storage on the local upload directory, served from /uploads."""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import anyio
import structlog
from fastapi import UploadFile

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import ValidationError

logger = structlog.get_logger("greenhouse_hub.uploads")

UPLOAD_URL_PREFIX = "/uploads"

_EXTENSIONS = {
	"image/jpeg": ".jpg",
	"image/png": ".png",
	"image/gif": ".gif",
	"video/mp4": ".mp4",
	"video/quicktime": ".mov",
	"video/webm": ".webm",
}


@dataclass(frozen=True, slots=True)
class StoredUpload:
	url: str
	filename: str
	content_type: str
	size: int


def _extension(content_type: str) -> str:
	# the validated content type decides the suffix; the client filename never does
	return _EXTENSIONS[content_type]


class UploadService:
	def __init__(self, upload_dir: str | None = None):
		self.settings = get_settings()
		self.upload_dir = anyio.Path(upload_dir or self.settings.upload_dir)

	def validate(self, content_type: str | None, size: int) -> str:
		kind = (content_type or "").split(";")[0].strip().lower()
		if kind not in self.settings.upload_allowed_types or kind not in _EXTENSIONS:
			raise ValidationError(
				"Unsupported file type. Allowed: JPEG, PNG, GIF, MP4, MOV, WEBM",
				code="unsupported_media_type",
			)
		if size > self.settings.upload_max_bytes:
			limit_mb = self.settings.upload_max_bytes // (1024 * 1024)
			raise ValidationError(f"File exceeds the {limit_mb} MB limit", code="file_too_large")
		if size == 0:
			raise ValidationError("Uploaded file is empty")
		return kind

	async def store(self, content: bytes, content_type: str | None, original_name: str | None) -> StoredUpload:
		"""Write under a fresh unique name; two concurrent uploads never collide."""
		kind = self.validate(content_type, len(content))
		filename = f"{uuid.uuid4().hex}{_extension(kind)}"
		await self.upload_dir.mkdir(parents=True, exist_ok=True)
		await (self.upload_dir / filename).write_bytes(content)
		logger.info(
			"upload_stored",
			filename=filename,
			original_name=original_name,
			content_type=kind,
			size=len(content),
		)
		return StoredUpload(
			url=f"{UPLOAD_URL_PREFIX}/{filename}",
			filename=filename,
			content_type=kind,
			size=len(content),
		)

	async def store_upload(self, file: UploadFile) -> StoredUpload:
		# read one byte past the limit so oversized files are rejected without buffering them whole
		content = await file.read(self.settings.upload_max_bytes + 1)
		return await self.store(content, file.content_type, file.filename)

"""Transactional email through the SendGrid v3 mail-send API."""

from __future__ import annotations

from dataclasses import dataclass

import httpx
import structlog

from greenhouse_hub.config import get_settings
from greenhouse_hub.errors import ExternalServiceError

logger = structlog.get_logger("greenhouse_hub.email")

EMAIL_UNAVAILABLE_MESSAGE = "Email service is currently unavailable. Please try again later."


@dataclass(frozen=True, slots=True)
class EmailMessage:
	to: str
	subject: str
	text: str
	reply_to: str | None = None


class EmailService:
	def __init__(self) -> None:
		self.settings = get_settings()

	@property
	def enabled(self) -> bool:
		return bool(self.settings.sendgrid_api_key)

	async def send(self, message: EmailMessage) -> None:
		"""Deliver one message; provider failures raise ExternalServiceError."""
		if not self.enabled:
			logger.info("email_skipped", reason="no_api_key", to=message.to, subject=message.subject)
			return

		body: dict[str, object] = {
			"personalizations": [{"to": [{"email": message.to}]}],
			"from": {"email": self.settings.email_from},
			"subject": message.subject,
			"content": [{"type": "text/plain", "value": message.text}],
		}
		if message.reply_to:
			body["reply_to"] = {"email": message.reply_to}
		headers = {
			"authorization": f"Bearer {self.settings.sendgrid_api_key}",
			"content-type": "application/json",
		}
		try:
			async with httpx.AsyncClient(timeout=self.settings.email_timeout_seconds) as client:
				response = await client.post(self.settings.sendgrid_base_url, headers=headers, json=body)
				response.raise_for_status()
		except httpx.HTTPError as exc:
			logger.warning("email_send_failed", to=message.to, subject=message.subject, error=str(exc))
			raise ExternalServiceError(EMAIL_UNAVAILABLE_MESSAGE) from exc

	async def send_best_effort(self, message: EmailMessage) -> bool:
		"""Like send(), but failures are logged and reported as False."""
		try:
			await self.send(message)
		except ExternalServiceError:
			return False
		return True

	async def send_welcome(self, to: str, name: str) -> bool:
		return await self.send_best_effort(
			EmailMessage(
				to=to,
				subject="Welcome to the Greenhouse Growers Association",
				text=(
					f"Hi {name},\n\n"
					"Your membership account is ready. Sign in to browse the resource library, "
					"join the forum, and connect with other growers.\n"
				),
			)
		)

	async def forward_to_admin(self, subject: str, text: str, reply_to: str | None = None) -> None:
		await self.send(
			EmailMessage(
				to=self.settings.admin_inbox,
				subject=subject,
				text=text,
				reply_to=reply_to,
			)
		)

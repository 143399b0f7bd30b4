"""Email sender interface + selection helpers.

Account emails (welcome / password setup reminder) only. Sends happen on the
background dispatcher, so senders raise on failure and the dispatcher logs.
"""

from __future__ import annotations

import html as html_module
import logging
from typing import Protocol

import httpx

from app.core.config import settings
from app.core.exceptions import ExternalServiceError
from app.services.http_service import request_with_retries

logger = logging.getLogger(__name__)

RESEND_SEND_URL = "https://api.resend.com/emails"
RESEND_MAX_ATTEMPTS = 3
RESEND_RETRY_BASE_DELAY = 0.5
RESEND_RETRY_MAX_DELAY = 4.0
RESEND_TIMEOUT_SECONDS = 20.0

WELCOME_SUBJECT = "Welcome to HavenzSure - Set your password"
REMINDER_SUBJECT = "Reminder - Set your HavenzSure password"

_WELCOME_BODY = """Hi {first_name},

Your HavenzSure account has been created successfully.

To complete your account setup, please click the link below to create your password:

{link}

This link is valid for 1 hour.

If you have any questions, please contact your administrator.

Best regards,
Havenz Tech Team
"""

_REMINDER_BODY = """Hi {first_name},

This is a friendly reminder to complete your HavenzSure account setup.

Please use the following link to set your password:

{link}

This link is valid for 1 hour.

If you have any questions, please contact your administrator.

Best regards,
Havenz Tech Team
"""


class EmailSender(Protocol):
    key: str

    async def send_welcome_setup(self, email: str, first_name: str, link: str) -> None:
        """Send the first password setup email."""

    async def send_setup_reminder(self, email: str, first_name: str, link: str) -> None:
        """Send a fresh password setup link."""


def _to_html(text: str) -> str:
    return "<p>" + html_module.escape(text).replace("\n\n", "</p><p>").replace("\n", "<br>") + "</p>"


class LogEmailSender:
    """Dev sender: writes the email to the log instead of sending it."""

    key = "log"

    async def send_welcome_setup(self, email: str, first_name: str, link: str) -> None:
        logger.info("[log email] welcome setup to=%s link=%s", email, link)

    async def send_setup_reminder(self, email: str, first_name: str, link: str) -> None:
        logger.info("[log email] setup reminder to=%s link=%s", email, link)


class ResendEmailSender:
    """Resend HTTP API sender with retry/backoff."""

    key = "resend"

    def __init__(self, api_key: str, from_email: str):
        self._api_key = api_key
        self._from_email = from_email

    async def send_welcome_setup(self, email: str, first_name: str, link: str) -> None:
        body = _WELCOME_BODY.format(first_name=first_name, link=link)
        await self._send(email, WELCOME_SUBJECT, body)

    async def send_setup_reminder(self, email: str, first_name: str, link: str) -> None:
        body = _REMINDER_BODY.format(first_name=first_name, link=link)
        await self._send(email, REMINDER_SUBJECT, body)

    async def _send(self, to_email: str, subject: str, text: str) -> str | None:
        if not to_email.strip():
            raise ExternalServiceError("recipient email is empty")

        payload: dict[str, object] = {
            "from": self._from_email,
            "to": [to_email],
            "subject": subject,
            "html": _to_html(text),
            "text": text,
        }
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=RESEND_TIMEOUT_SECONDS) as client:

            async def request_fn() -> httpx.Response:
                return await client.post(RESEND_SEND_URL, headers=headers, json=payload)

            response = await request_with_retries(
                request_fn,
                max_attempts=RESEND_MAX_ATTEMPTS,
                base_delay=RESEND_RETRY_BASE_DELAY,
                max_delay=RESEND_RETRY_MAX_DELAY,
                label="Resend send",
            )

        if not 200 <= response.status_code < 300:
            raise ExternalServiceError(
                f"Resend API error {response.status_code} sending {subject!r}"
            )
        message_id = response.json().get("id")
        logger.info("Email sent subject=%r message_id=%s", subject, message_id)
        return message_id


def select_sender() -> EmailSender:
    """Pick the sender configured by EMAIL_PROVIDER (falls back to logging)."""
    if settings.EMAIL_PROVIDER == "resend":
        if settings.RESEND_API_KEY:
            return ResendEmailSender(settings.RESEND_API_KEY, settings.EMAIL_FROM)
        logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is empty; using log sender")
    return LogEmailSender()

"""EmailJS client for transactional email delivery."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import httpx

from codecrafter.config import EmailConfig
from codecrafter.errors import NotificationFailedError
from codecrafter.logging import get_logger

logger = get_logger(__name__)


@dataclass
class EmailMessage:
    """One outgoing email in the shape the generic EmailJS template expects."""

    to_address: str
    subject: str
    body_html: str
    from_name: str
    reply_to: str | None = None

    def template_params(self) -> dict[str, Any]:
        """Render the template_params block of an EmailJS send request."""
        return {
            "to_email": self.to_address,
            "from_name": self.from_name,
            "reply_to_email": self.reply_to or self.to_address,
            "subject_line": self.subject,
            "html_body_content": self.body_html,
        }


class EmailJSClient:
    """Client for sending transactional email through the EmailJS REST API."""

    def __init__(self, config: EmailConfig) -> None:
        self.config = config
        self.logger = get_logger(__name__)
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.timeout_seconds)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _request_body(self, message: EmailMessage) -> dict[str, Any]:
        private_key = self.config.private_key
        return {
            "service_id": self.config.service_id,
            "template_id": self.config.template_id,
            "user_id": self.config.user_id,
            "accessToken": private_key.get_secret_value() if private_key else None,
            "template_params": message.template_params(),
        }

    async def send(self, message: EmailMessage) -> bool:
        """Send an email.

        Returns True if EmailJS accepted the message, False otherwise.
        """
        if not self.config.enabled:
            self.logger.info(
                "email_disabled",
                to=message.to_address,
                subject=message.subject,
            )
            return False

        if not self.config.is_configured:
            self.logger.error(
                "email_not_configured",
                to=message.to_address,
                subject=message.subject,
                body_preview=message.body_html[:200],
            )
            return False

        try:
            client = await self._get_client()
            response = await client.post(
                self.config.api_url,
                json=self._request_body(message),
                headers={"Content-Type": "application/json"},
            )

            if response.is_success:
                self.logger.info(
                    "email_sent",
                    to=message.to_address,
                    subject=message.subject,
                    status_code=response.status_code,
                )
                return True
            else:
                self.logger.warning(
                    "email_send_failed",
                    to=message.to_address,
                    subject=message.subject,
                    status_code=response.status_code,
                    response_text=response.text[:200],
                )
                return False

        except httpx.RequestError as e:
            self.logger.error(
                "email_send_error",
                to=message.to_address,
                subject=message.subject,
                error=str(e),
            )
            return False

    async def notify(
        self, to_address: str, subject: str, body_html: str, reply_to: str | None = None
    ) -> None:
        """Deliver one message, raising if delivery was not confirmed.

        Raises:
            NotificationFailedError: If EmailJS did not accept the message.
        """
        message = EmailMessage(
            to_address=to_address,
            subject=subject,
            body_html=body_html,
            from_name=self.config.from_name,
            reply_to=reply_to,
        )
        if not await self.send(message):
            raise NotificationFailedError(to_address, "email was not accepted by EmailJS")

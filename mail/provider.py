"""MailerSend HTTP client."""

from __future__ import annotations

import logging

import requests

from .settings import MailSettings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when the e-mail provider cannot accept a message."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MailerSendClient:
    """Send single messages through the MailerSend email API."""

    def __init__(self, settings: MailSettings, http=None):
        self.settings = settings
        self.http = http or requests

    def send(
        self,
        *,
        to_email: str,
        to_name: str,
        subject: str,
        html: str,
        text: str,
    ) -> str | None:
        """Submit a message and return the provider message id, if one was assigned."""

        if not self.settings.provider_configured:
            raise ProviderError("MailerSend API token is not configured.")

        payload = {
            "from": {"email": self.settings.from_email, "name": self.settings.from_name},
            "to": [{"email": to_email, "name": to_name}],
            "subject": subject,
            "html": html,
            "text": text,
        }

        try:
            response = self.http.post(
                self.settings.api_url,
                headers={
                    "Authorization": f"Bearer {self.settings.api_token}",
                    "Content-Type": "application/json",
                },
                json=payload,
                timeout=self.settings.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"MailerSend request failed: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"{response.status_code} {response.reason} - {response.text}",
                status_code=response.status_code,
            )

        message_id = response.headers.get("X-Message-Id")
        if not message_id and response.content:
            try:
                message_id = (response.json() or {}).get("message_id")
            except ValueError:
                message_id = None
        logger.debug("MailerSend accepted message %s for %s", message_id, to_email)
        return message_id

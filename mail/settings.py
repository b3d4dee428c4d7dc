"""Resolved mail configuration shared by the e-mail components."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping
from urllib.parse import quote

from flask import current_app


@dataclass(frozen=True)
class MailSettings:
    """Immutable mail credentials and links, resolved once per application."""

    api_token: str | None
    api_url: str
    from_email: str
    from_name: str
    webhook_secret: str | None
    signature_header: str
    base_url: str
    app_env: str = "development"
    enforce_signature: bool = False
    timeout: float = 10.0
    sandbox_recipient: str | None = None

    @classmethod
    def from_config(cls, config: Mapping[str, object]) -> "MailSettings":
        """Build settings from a Flask config mapping."""

        return cls(
            api_token=config.get("MAILERSEND_API_TOKEN") or None,
            api_url=str(config.get("MAILERSEND_API_URL") or "https://api.mailersend.com/v1/email"),
            from_email=str(config.get("MAIL_FROM_EMAIL") or "noreply@aicryptotrading.com"),
            from_name=str(config.get("MAIL_FROM_NAME") or "AI Crypto Trading"),
            webhook_secret=config.get("MAILERSEND_WEBHOOK_SECRET") or None,
            signature_header=str(config.get("MAILERSEND_SIGNATURE_HEADER") or "X-Provider-Signature"),
            base_url=str(config.get("APP_BASE_URL") or "http://localhost:3000").rstrip("/"),
            app_env=str(config.get("APP_ENV") or "development").lower(),
            enforce_signature=bool(config.get("WEBHOOK_ENFORCE_SIGNATURE", False)),
            timeout=float(config.get("MAILERSEND_TIMEOUT") or 10.0),
            sandbox_recipient=config.get("MAIL_SANDBOX_RECIPIENT") or None,
        )

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def provider_configured(self) -> bool:
        return bool(self.api_token)

    @property
    def signature_required(self) -> bool:
        return self.is_production or self.enforce_signature

    def verification_url(self, token: str, email: str | None = None) -> str:
        url = f"{self.base_url}/auth/verify-email?token={quote(token, safe='')}"
        if email:
            url += f"&email={quote(email, safe='')}"
        return url

    def reset_url(self, token: str) -> str:
        return f"{self.base_url}/auth/reset-password?token={quote(token, safe='')}"


def init_app(app) -> MailSettings:
    """Resolve the settings for ``app`` and register them as an extension."""

    settings = MailSettings.from_config(app.config)
    app.extensions["mail_settings"] = settings
    return settings


def current_settings() -> MailSettings:
    return current_app.extensions["mail_settings"]

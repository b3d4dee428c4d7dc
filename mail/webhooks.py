"""Signature verification and status updates for MailerSend webhooks."""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session
from werkzeug.exceptions import BadRequest, NotFound, Unauthorized

from models.email_log import EmailLog
from models.user import utcnow

from .settings import MailSettings
from .status import can_transition, map_provider_event

logger = logging.getLogger(__name__)


def compute_signature(payload: bytes, secret: str) -> str:
    """Return the hex HMAC-SHA256 of ``payload`` keyed by ``secret``."""

    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def verify_signature(payload: bytes, signature: str | None, secret: str | None) -> bool:
    if not secret or not signature:
        return False
    expected = compute_signature(payload, secret)
    return hmac.compare_digest(expected.encode("ascii"), signature.strip().lower().encode("utf-8"))


@dataclass(frozen=True)
class WebhookOutcome:
    event: str
    status: str | None
    matched: int
    updated: int
    ignored: int

    def to_dict(self) -> dict:
        return {
            "message": "Webhook processed.",
            "event": self.event,
            "status": self.status,
            "matched": self.matched,
            "updated": self.updated,
            "ignored": self.ignored,
        }


class WebhookIngestor:
    """Apply provider delivery events to the matching e-mail logs."""

    def __init__(self, settings: MailSettings, session: Session):
        self.settings = settings
        self.session = session

    def authenticate(self, payload: bytes, signature: str | None) -> None:
        """Raise ``Unauthorized`` unless the payload is signed, where signing is required."""

        if not self.settings.signature_required:
            return
        if not self.settings.webhook_secret:
            logger.error("Webhook signature required but no webhook secret is configured")
            raise Unauthorized("Invalid webhook signature.")
        if not verify_signature(payload, signature, self.settings.webhook_secret):
            logger.warning("Rejected webhook with invalid signature")
            raise Unauthorized("Invalid webhook signature.")

    def handle(self, payload: bytes, signature: str | None = None) -> WebhookOutcome:
        self.authenticate(payload, signature)
        event = self._parse(payload)
        return self.apply(event)

    @staticmethod
    def _parse(payload: bytes) -> dict:
        try:
            event = json.loads(payload or b"")
        except (ValueError, UnicodeDecodeError) as exc:
            raise BadRequest("Webhook body must be valid JSON.") from exc
        if not isinstance(event, dict):
            raise BadRequest("Webhook body must be a JSON object.")
        return event

    def apply(self, event: dict) -> WebhookOutcome:
        event_type = event.get("type")
        data = event.get("data")
        if not isinstance(data, dict):
            data = {}
        message_id = data.get("message_id")
        if not message_id or not isinstance(message_id, str):
            logger.error("Webhook %s without message_id", event_type)
            raise BadRequest("message_id is required.")

        update = map_provider_event(event_type, data)
        logger.info("Webhook received: %s for message %s", event_type, message_id)

        logs = (
            self.session.query(EmailLog)
            .filter(EmailLog.provider_message_id == message_id)
            .all()
        )
        if not logs:
            logger.warning("No e-mail log found for message id %s", message_id)
            raise NotFound("Email log not found.")
        if len(logs) > 1:
            logger.warning("Message id %s matches %d e-mail logs", message_id, len(logs))

        if update.status is None:
            logger.info("Ignoring webhook event %s for message %s", update.event, message_id)
            return WebhookOutcome(update.event, None, len(logs), 0, len(logs))

        updated = ignored = 0
        now = utcnow()
        for log in logs:
            if not can_transition(log.status, update.status):
                logger.warning(
                    "Out-of-order event %s for e-mail log %s: %s -> %s not applied",
                    update.event,
                    log.id,
                    log.status.value,
                    update.status.value,
                )
                ignored += 1
                continue
            log.status = update.status
            log.append_detail(update.detail)
            log.updated_at = now
            updated += 1
            logger.info("E-mail log %s status -> %s", log.id, update.status.value)

        self.session.commit()
        return WebhookOutcome(update.event, update.status.value, len(logs), updated, ignored)

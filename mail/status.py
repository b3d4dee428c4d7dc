"""E-mail status lifecycle and provider event mapping."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Mapping


class EmailStatus(str, enum.Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"
    DELIVERED = "DELIVERED"
    OPENED = "OPENED"
    CLICKED = "CLICKED"
    BOUNCED = "BOUNCED"
    SPAM = "SPAM"
    BLOCKED = "BLOCKED"


class EmailType(str, enum.Enum):
    VERIFICATION = "VERIFICATION"
    PASSWORD_RESET = "PASSWORD_RESET"
    NOTIFICATION = "NOTIFICATION"
    ALERT = "ALERT"
    TEST = "TEST"
    OTHER = "OTHER"


RESENDABLE_TYPES = frozenset({EmailType.VERIFICATION, EmailType.PASSWORD_RESET, EmailType.TEST})

# Position in the delivery lifecycle. A status may only move to an equal or later stage.
_LIFECYCLE_RANK = {
    EmailStatus.PENDING: 0,
    EmailStatus.SENT: 1,
    EmailStatus.FAILED: 1,
    EmailStatus.DELIVERED: 2,
    EmailStatus.BOUNCED: 2,
    EmailStatus.BLOCKED: 2,
    EmailStatus.OPENED: 3,
    EmailStatus.SPAM: 3,
    EmailStatus.CLICKED: 4,
}


def parse_status(value: object) -> EmailStatus | None:
    """Return the matching status for ``value`` or ``None`` when unknown."""

    if isinstance(value, EmailStatus):
        return value
    try:
        return EmailStatus(str(value).strip().upper())
    except ValueError:
        return None


def parse_type(value: object) -> EmailType | None:
    """Return the matching e-mail type for ``value`` or ``None`` when unknown."""

    if isinstance(value, EmailType):
        return value
    try:
        return EmailType(str(value).strip().upper())
    except ValueError:
        return None


def can_transition(current: EmailStatus | str | None, new: EmailStatus | str) -> bool:
    """Return True when moving from ``current`` to ``new`` does not regress.

    Replaying the current status is allowed so repeated webhook deliveries are
    harmless. A missing or unknown current status accepts any new status.
    """

    target = parse_status(new)
    if target is None:
        return False
    source = parse_status(current) if current is not None else None
    if source is None:
        return True
    return _LIFECYCLE_RANK[target] >= _LIFECYCLE_RANK[source]


@dataclass(frozen=True)
class StatusUpdate:
    """Outcome of mapping one provider event."""

    event: str
    status: EmailStatus | None
    detail: str = ""


_SIMPLE_EVENTS = {
    "sent": EmailStatus.SENT,
    "delivered": EmailStatus.DELIVERED,
    "opened": EmailStatus.OPENED,
    "spam_complaint": EmailStatus.SPAM,
}


def map_provider_event(event_type: str | None, data: Mapping[str, object] | None = None) -> StatusUpdate:
    """Translate a MailerSend webhook event into an internal status update.

    Both ``activity.delivered`` and ``delivered`` are accepted. Events without an
    internal counterpart (``unsubscribed`` and anything unknown) map to a ``None``
    status and must be acknowledged without touching the log.
    """

    data = data or {}
    event = event_type.strip().lower() if isinstance(event_type, str) else ""
    event = event.removeprefix("activity.")

    if event in _SIMPLE_EVENTS:
        return StatusUpdate(event=event, status=_SIMPLE_EVENTS[event])

    if event in {"soft_bounced", "hard_bounced"}:
        kind = "Soft" if event == "soft_bounced" else "Hard"
        reason = data.get("reason") or "Desconhecida"
        return StatusUpdate(
            event=event,
            status=EmailStatus.BOUNCED,
            detail=f"Tipo: {kind}, Razão: {reason}",
        )

    if event == "clicked":
        url = data.get("url") or "N/A"
        return StatusUpdate(event=event, status=EmailStatus.CLICKED, detail=f"URL: {url}")

    return StatusUpdate(event=event, status=None)

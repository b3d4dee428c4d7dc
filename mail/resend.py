"""Re-send a previously logged e-mail."""

from __future__ import annotations

import logging
import time

from sqlalchemy.orm import Session
from werkzeug.exceptions import BadRequest, NotFound

from models.email_log import EmailLog
from models.user import User

from .dispatcher import DEFAULT_RECIPIENT_NAME, DEFAULT_TEST_RECIPIENT_NAME, DispatchResult, EmailDispatcher
from .status import RESENDABLE_TYPES, EmailType

logger = logging.getLogger(__name__)

# Test logs whose subject mentions this are re-sent as verification messages.
VERIFICATION_SUBJECT_MARKER = "Verificação"


class ResendOrchestrator:
    """Start a new send cycle for an existing log without touching the original row."""

    def __init__(self, dispatcher: EmailDispatcher, session: Session):
        self.dispatcher = dispatcher
        self.session = session
        self.settings = dispatcher.settings

    def resend(self, log_id: object) -> DispatchResult:
        log = self._get_log(log_id)
        if log.email_type not in RESENDABLE_TYPES:
            raise BadRequest("This email type cannot be resent.")

        logger.info("Resending e-mail log %s (%s)", log.id, log.email_type.value)
        if log.email_type == EmailType.VERIFICATION:
            return self._resend_verification(log)
        if log.email_type == EmailType.PASSWORD_RESET:
            return self._resend_password_reset(log)
        return self._resend_test(log)

    def _get_log(self, log_id: object) -> EmailLog:
        # JSON booleans and floats are not log ids even though int() accepts them.
        if isinstance(log_id, (bool, float)):
            raise NotFound("Email log not found.")
        try:
            key = int(log_id)
        except (TypeError, ValueError):
            raise NotFound("Email log not found.") from None
        log = self.session.get(EmailLog, key)
        if log is None:
            raise NotFound("Email log not found.")
        return log

    def _get_user(self, log: EmailLog) -> User:
        user = self.session.get(User, log.user_id) if log.user_id is not None else None
        if user is None:
            raise NotFound("No user found for this email.")
        return user

    def _resend_verification(self, log: EmailLog) -> DispatchResult:
        user = self._get_user(log)
        if not user.email_verification_token:
            raise BadRequest("Cannot resend this verification email. Token not available.")
        url = self.settings.verification_url(user.email_verification_token, log.to_email)
        return self.dispatcher.send_verification_email(
            log.to_email,
            log.to_name or DEFAULT_RECIPIENT_NAME,
            url,
            user_id=user.id,
        )

    def _resend_password_reset(self, log: EmailLog) -> DispatchResult:
        user = self._get_user(log)
        token = user.issue_reset_token()
        self.session.commit()
        return self.dispatcher.send_password_reset_email(
            log.to_email,
            log.to_name or DEFAULT_RECIPIENT_NAME,
            self.settings.reset_url(token),
            user_id=user.id,
        )

    def _resend_test(self, log: EmailLog) -> DispatchResult:
        kind = "verification" if VERIFICATION_SUBJECT_MARKER in (log.subject or "") else "reset"
        return self.dispatcher.send_test_email(
            log.to_email,
            log.to_name or DEFAULT_TEST_RECIPIENT_NAME,
            kind=kind,
            user_id=log.user_id,
            token=f"test-token-resent-{int(time.time() * 1000)}",
        )

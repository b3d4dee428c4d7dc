"""Compose, send and log transactional e-mail."""

from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass

from sqlalchemy.orm import Session

from models.email_log import EmailLog
from utils.request_validation import normalize_email

from . import rendering
from .provider import MailerSendClient, ProviderError
from .settings import MailSettings
from .status import EmailStatus, EmailType

logger = logging.getLogger(__name__)

DEFAULT_RECIPIENT_NAME = "Usuário"
DEFAULT_TEST_RECIPIENT_NAME = "Usuário Teste"
TEST_SUBJECT_PREFIX = "[Teste] "


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one dispatch; the log row has already been committed."""

    log_id: int
    status: str
    message_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == EmailStatus.SENT.value

    def to_dict(self) -> dict:
        data = asdict(self)
        data["ok"] = self.ok
        return data


class EmailDispatcher:
    """Send account e-mails through MailerSend, recording one EmailLog per send.

    Provider failures never propagate: they end up as a FAILED log and a
    ``DispatchResult`` with ``ok`` set to False, so the calling flow can carry on.
    """

    def __init__(self, settings: MailSettings, session: Session, client: MailerSendClient | None = None):
        self.settings = settings
        self.session = session
        self.client = client or MailerSendClient(settings)

    def send_verification_email(
        self,
        to: str,
        name: str | None,
        verification_url: str,
        user_id: int | None = None,
    ) -> DispatchResult:
        to = normalize_email(to)
        name = name or DEFAULT_RECIPIENT_NAME
        rendered = rendering.verification_email(
            name, verification_url, notice=self._notice(to, name, EmailType.VERIFICATION)
        )
        logger.info("Sending verification e-mail to %s", to)
        return self._deliver(EmailType.VERIFICATION, to, name, rendered, user_id)

    def send_password_reset_email(
        self,
        to: str,
        name: str | None,
        reset_url: str,
        user_id: int | None = None,
    ) -> DispatchResult:
        to = normalize_email(to)
        name = name or DEFAULT_RECIPIENT_NAME
        rendered = rendering.password_reset_email(
            name, reset_url, notice=self._notice(to, name, EmailType.PASSWORD_RESET)
        )
        logger.info("Sending password reset e-mail to %s", to)
        return self._deliver(EmailType.PASSWORD_RESET, to, name, rendered, user_id)

    def send_test_email(
        self,
        to: str,
        name: str | None = None,
        kind: str = "verification",
        user_id: int | None = None,
        token: str | None = None,
    ) -> DispatchResult:
        """Send a verification- or reset-style message logged as a TEST e-mail."""

        to = normalize_email(to)
        name = name or DEFAULT_TEST_RECIPIENT_NAME
        token = token or f"test-token-{int(time.time() * 1000)}"
        notice = self._notice(to, name, EmailType.TEST)
        if kind == "reset":
            rendered = rendering.password_reset_email(
                name,
                self.settings.reset_url(token),
                subject=TEST_SUBJECT_PREFIX + rendering.PASSWORD_RESET_SUBJECT,
                notice=notice,
            )
        else:
            rendered = rendering.verification_email(
                name,
                self.settings.verification_url(token, to),
                subject=TEST_SUBJECT_PREFIX + rendering.VERIFICATION_SUBJECT,
                notice=notice,
            )
        logger.info("Sending %s test e-mail to %s", kind, to)
        return self._deliver(EmailType.TEST, to, name, rendered, user_id)

    def _notice(self, to: str, name: str, email_type: EmailType) -> dict | None:
        if not self.settings.sandbox_recipient:
            return None
        return {"to_email": to, "to_name": name, "email_type": email_type.value}

    def _deliver(
        self,
        email_type: EmailType,
        to: str,
        name: str,
        rendered: rendering.RenderedEmail,
        user_id: int | None,
    ) -> DispatchResult:
        log = EmailLog(
            to_email=to,
            to_name=name,
            email_type=email_type,
            subject=rendered.subject,
            status=EmailStatus.PENDING,
            user_id=user_id,
        )
        self.session.add(log)
        self.session.flush()

        recipient, recipient_name, subject = to, name, rendered.subject
        sandbox = self.settings.sandbox_recipient
        if sandbox:
            recipient = sandbox
            recipient_name = f"Admin - Destinatário: {name}"
            subject = f"[TRIAL] Para: {to} - {rendered.subject}"
            logger.warning("Sandbox mode: redirecting e-mail for %s to %s", to, sandbox)

        message_id = None
        error = None
        try:
            message_id = self.client.send(
                to_email=recipient,
                to_name=recipient_name,
                subject=subject,
                html=rendered.html,
                text=rendered.text,
            )
        except ProviderError as exc:
            error = str(exc)
            logger.error("E-mail %s to %s failed: %s", email_type.value, to, error)
            log.status = EmailStatus.FAILED
            log.append_detail(error)
        else:
            log.status = EmailStatus.SENT
            log.provider_message_id = message_id
            log.append_detail(f"Message ID: {message_id or 'N/A'}")
            logger.info("E-mail %s to %s sent (message id %s)", email_type.value, to, message_id)

        if sandbox:
            log.append_detail(f"Trial mode: redirecionado para {sandbox}")

        self.session.commit()
        return DispatchResult(
            log_id=log.id,
            status=log.status.value,
            message_id=message_id,
            error=error,
        )

"""Tests for re-sending logged e-mails from the admin API."""

from __future__ import annotations

from datetime import timedelta

from flask_jwt_extended import create_access_token

from mail.status import EmailStatus, EmailType
from models import db
from models.email_log import EmailLog
from models.user import User, utcnow

RESEND_URL = "/admin/email-logs/resend"


def _create_user(email: str, role: str = "USER", name: str | None = "Ana") -> User:
    user = User(email=email, name=name, role=role)
    user.set_password("Secret123!")
    db.session.add(user)
    db.session.commit()
    return user


def _auth_headers(app, user_id: int) -> dict[str, str]:
    with app.app_context():
        token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}


def _create_log(
    email_type: EmailType,
    user_id: int | None = None,
    subject: str = "Verificação de Email - AI Crypto Trading",
    status: EmailStatus = EmailStatus.DELIVERED,
) -> int:
    log = EmailLog(
        to_email="ana@example.com",
        to_name="Ana",
        email_type=email_type,
        subject=subject,
        status=status,
        status_details="Message ID: msg-original",
        provider_message_id="msg-original",
        user_id=user_id,
    )
    db.session.add(log)
    db.session.commit()
    return log.id


def _setup(app) -> tuple[dict[str, str], int]:
    with app.app_context():
        admin_id = _create_user("admin@example.com", role="ADMIN", name="Admin").id
        user_id = _create_user("ana@example.com").id
    return _auth_headers(app, admin_id), user_id


def test_resend_requires_authentication(client):
    response = client.post(RESEND_URL, json={"logId": 1})
    assert response.status_code == 401


def test_resend_requires_admin_role(app, client):
    with app.app_context():
        user_id = _create_user("user@example.com").id
        log_id = _create_log(EmailType.TEST)

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=_auth_headers(app, user_id))

    assert response.status_code == 403


def test_resend_validates_log_id(app, client):
    headers, _ = _setup(app)

    assert client.post(RESEND_URL, json={}, headers=headers).status_code == 400
    assert client.post(RESEND_URL, json={"logId": 999}, headers=headers).status_code == 404
    assert client.post(RESEND_URL, json={"logId": "abc"}, headers=headers).status_code == 404


def test_resend_rejects_boolean_and_float_log_ids(app, client, mailersend):
    headers, user_id = _setup(app)
    with app.app_context():
        log_id = _create_log(EmailType.TEST, user_id=user_id)
    assert log_id == 1

    for value in (True, 1.0):
        response = client.post(RESEND_URL, json={"logId": value}, headers=headers)
        assert response.status_code == 404

    assert mailersend.calls == []
    with app.app_context():
        assert EmailLog.query.count() == 1


def test_non_resendable_type_is_rejected(app, client, mailersend):
    headers, user_id = _setup(app)
    with app.app_context():
        log_id = _create_log(EmailType.NOTIFICATION, user_id=user_id)

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 400
    assert mailersend.calls == []


def test_verification_resend_reuses_existing_token(app, client, mailersend):
    headers, user_id = _setup(app)
    with app.app_context():
        user = db.session.get(User, user_id)
        token = user.issue_verification_token()
        db.session.commit()
        log_id = _create_log(EmailType.VERIFICATION, user_id=user_id)

    mailersend.queue_success("msg-new")
    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 200
    details = response.get_json()["details"]
    assert details["status"] == "SENT"
    assert details["message_id"] == "msg-new"
    assert f"token={token}&email=ana%40example.com" in mailersend.last_payload["text"]

    with app.app_context():
        new_log = db.session.get(EmailLog, details["log_id"])
        original = db.session.get(EmailLog, log_id)
        assert new_log.email_type == EmailType.VERIFICATION
        assert new_log.user_id == user_id
        assert original.status == EmailStatus.DELIVERED
        assert original.provider_message_id == "msg-original"


def test_verification_resend_without_token_fails(app, client, mailersend):
    headers, user_id = _setup(app)
    with app.app_context():
        log_id = _create_log(EmailType.VERIFICATION, user_id=user_id)

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 400
    assert mailersend.calls == []


def test_verification_resend_without_user_fails(app, client):
    headers, _ = _setup(app)
    with app.app_context():
        log_id = _create_log(EmailType.VERIFICATION, user_id=None)

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 404


def test_password_reset_resend_invalidates_previous_token(app, client, mailersend):
    headers, user_id = _setup(app)
    with app.app_context():
        user = db.session.get(User, user_id)
        old_token = user.issue_reset_token()
        db.session.commit()
        log_id = _create_log(
            EmailType.PASSWORD_RESET,
            user_id=user_id,
            subject="Redefinição de Senha - AI Crypto Trading",
        )

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)
    assert response.status_code == 200

    with app.app_context():
        user = db.session.get(User, user_id)
        new_token = user.reset_password_token
        assert new_token != old_token
        assert user.reset_password_expires > utcnow() + timedelta(minutes=55)
        assert user.reset_password_expires <= utcnow() + timedelta(hours=1)
    assert f"token={new_token}" in mailersend.last_payload["text"]

    stale = client.post(
        "/auth/reset-password",
        json={"token": old_token, "password": "NewSecret1!", "confirmPassword": "NewSecret1!"},
    )
    assert stale.status_code == 400
    assert "Invalid or expired" in stale.get_json()["detail"]

    fresh = client.post(
        "/auth/reset-password",
        json={"token": new_token, "password": "NewSecret1!", "confirmPassword": "NewSecret1!"},
    )
    assert fresh.status_code == 200


def test_test_resend_creates_new_log_and_keeps_original(app, client, mailersend):
    headers, _ = _setup(app)
    with app.app_context():
        log_id = _create_log(
            EmailType.TEST,
            subject="[Teste] Verificação de Email - AI Crypto Trading",
            status=EmailStatus.OPENED,
        )

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 200
    assert "/auth/verify-email?token=test-token-resent-" in mailersend.last_payload["html"]

    with app.app_context():
        assert EmailLog.query.count() == 2
        original = db.session.get(EmailLog, log_id)
        assert original.status == EmailStatus.OPENED
        assert original.status_details == "Message ID: msg-original"
        new_log = db.session.get(EmailLog, response.get_json()["details"]["log_id"])
        assert new_log.email_type == EmailType.TEST
        assert new_log.id != log_id


def test_test_resend_uses_reset_style_for_other_subjects(app, client, mailersend):
    headers, _ = _setup(app)
    with app.app_context():
        log_id = _create_log(
            EmailType.TEST,
            subject="[Teste] Redefinição de Senha - AI Crypto Trading",
        )

    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 200
    assert "/auth/reset-password?token=test-token-resent-" in mailersend.last_payload["text"]


def test_resend_reports_provider_failure(app, client, mailersend):
    headers, _ = _setup(app)
    with app.app_context():
        log_id = _create_log(EmailType.TEST)

    mailersend.queue_failure(503)
    response = client.post(RESEND_URL, json={"logId": log_id}, headers=headers)

    assert response.status_code == 200
    details = response.get_json()["details"]
    assert details["ok"] is False
    assert details["status"] == "FAILED"

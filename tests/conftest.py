"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest
import requests
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402


class _BaseTestConfig(Config):
    TESTING = True
    APP_ENV = "development"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = "test-jwt-secret-key-that-is-long-enough-for-hs256"
    RATE_LIMIT = "1000 per minute"
    APP_BASE_URL = "https://app.example.com"
    MAILERSEND_API_TOKEN = "mlsn.test-token"
    MAILERSEND_API_URL = "https://api.mailersend.test/v1/email"
    MAILERSEND_WEBHOOK_SECRET = "whsec_test"
    MAILERSEND_SIGNATURE_HEADER = "X-Provider-Signature"
    WEBHOOK_ENFORCE_SIGNATURE = False
    MAIL_SANDBOX_RECIPIENT = None


class FakeResponse:
    """Just enough of ``requests.Response`` for the MailerSend client."""

    def __init__(self, status_code: int = 202, message_id: str | None = None, body: bytes = b""):
        self.status_code = status_code
        self.ok = status_code < 400
        self.reason = "Accepted" if self.ok else "Error"
        self.headers = {"X-Message-Id": message_id} if message_id else {}
        self.content = body
        self.text = body.decode("utf-8")

    def json(self):
        return json.loads(self.content)


class FakeMailerSend:
    """Records outgoing API calls and replays queued responses."""

    def __init__(self):
        self.calls: list[dict] = []
        self._queued: list[object] = []
        self._counter = 0

    def queue_success(self, message_id: str) -> None:
        self._queued.append(FakeResponse(202, message_id))

    def queue_failure(self, status_code: int = 422, body: bytes = b'{"message": "rejected"}') -> None:
        self._queued.append(FakeResponse(status_code, body=body))

    def queue_error(self, error: Exception) -> None:
        self._queued.append(error)

    def post(self, url, **kwargs):
        self.calls.append({"url": url, **kwargs})
        if self._queued:
            item = self._queued.pop(0)
            if isinstance(item, Exception):
                raise item
            return item
        self._counter += 1
        return FakeResponse(202, f"msg-auto-{self._counter}")

    @property
    def last_payload(self) -> dict:
        return self.calls[-1]["json"]


@pytest.fixture(autouse=True)
def mailersend(monkeypatch) -> FakeMailerSend:
    """Replace outbound HTTP to MailerSend for every test."""

    fake = FakeMailerSend()
    monkeypatch.setattr(requests, "post", fake.post)
    return fake


@pytest.fixture()
def app_factory():
    """Build applications with configuration overrides; tables are created."""

    created: list[Flask] = []

    def _build(**overrides) -> Flask:
        class TestConfig(_BaseTestConfig):
            pass

        for key, value in overrides.items():
            setattr(TestConfig, key, value)

        application = create_app(TestConfig)
        with application.app_context():
            db.create_all()
        created.append(application)
        return application

    yield _build

    for application in created:
        with application.app_context():
            db.session.remove()
            db.drop_all()


@pytest.fixture()
def app(app_factory) -> Flask:
    """Create a Flask application instance for tests."""

    return app_factory()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()

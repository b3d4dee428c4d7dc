"""Application configuration module."""

import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    APP_ENV = os.getenv("APP_ENV", "development")
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///app.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Links embedded in e-mails
    APP_BASE_URL = os.getenv("APP_BASE_URL", "http://localhost:3000")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Rate limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # MailerSend
    MAILERSEND_API_TOKEN = os.getenv("MAILERSEND_API_TOKEN")
    MAILERSEND_API_URL = os.getenv("MAILERSEND_API_URL", "https://api.mailersend.com/v1/email")
    MAILERSEND_TIMEOUT = float(os.getenv("MAILERSEND_TIMEOUT", "10"))
    MAILERSEND_WEBHOOK_SECRET = os.getenv("MAILERSEND_WEBHOOK_SECRET")
    MAILERSEND_SIGNATURE_HEADER = os.getenv("MAILERSEND_SIGNATURE_HEADER", "X-Provider-Signature")
    WEBHOOK_ENFORCE_SIGNATURE = _env_flag("WEBHOOK_ENFORCE_SIGNATURE")
    MAIL_FROM_EMAIL = os.getenv("MAIL_FROM_EMAIL", "noreply@aicryptotrading.com")
    MAIL_FROM_NAME = os.getenv("MAIL_FROM_NAME", "AI Crypto Trading")
    # When set, every outgoing message is redirected here (provider trial accounts).
    MAIL_SANDBOX_RECIPIENT = os.getenv("MAIL_SANDBOX_RECIPIENT")

"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import re
from typing import Iterable

from email_validator import EmailNotValidError, validate_email
from flask import Request
from werkzeug.exceptions import BadRequest

PASSWORD_MIN_LENGTH = 8
_PASSWORD_RULES = (
    (re.compile(r"[A-Z]"), "Password must contain at least one uppercase letter."),
    (re.compile(r"[a-z]"), "Password must contain at least one lowercase letter."),
    (re.compile(r"[0-9]"), "Password must contain at least one number."),
    (re.compile(r"[^A-Za-z0-9]"), "Password must contain at least one special character."),
)


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def normalize_email(raw_email: str | None) -> str:
    """Return a lower-cased, syntactically valid address or raise ``ValueError``."""

    if raw_email is not None and not isinstance(raw_email, str):
        raise ValueError("Email address must be a string.")
    candidate = (raw_email or "").strip()
    if not candidate:
        raise ValueError("An email address is required.")
    try:
        result = validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValueError(f"Invalid email address: {exc}") from exc
    return result.normalized.lower()


def require_email(raw_email: str | None) -> str:
    """Like :func:`normalize_email` but raise a 400 error for invalid input."""

    try:
        return normalize_email(raw_email)
    except ValueError as exc:
        raise BadRequest(str(exc)) from exc


def optional_string(payload: dict, key: str) -> str | None:
    """Return ``payload[key]`` stripped, ``None`` when absent or blank, or raise a 400 error."""

    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise BadRequest(f"Field '{key}' must be a string.")
    return value.strip() or None


def password_problems(password: str) -> list[str]:
    """Return the password policy violations for ``password``."""

    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    for pattern, message in _PASSWORD_RULES:
        if not pattern.search(password):
            problems.append(message)
    return problems

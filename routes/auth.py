"""Authentication blueprint: accounts, login and e-mail token flows."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Callable

from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token
from sqlalchemy import func
from werkzeug.exceptions import BadRequest, Conflict, NotFound, Unauthorized

from mail.dispatcher import DispatchResult, EmailDispatcher
from mail.settings import current_settings
from models import db
from models.user import User, utcnow
from utils.request_validation import optional_string, parse_json_request, password_problems, require_email

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__)

FORGOT_PASSWORD_MESSAGE = (
    "If the email is registered, you will receive a link to reset your password."
)


def _find_user_by_email(email: str) -> User | None:
    # Case-insensitive lookup
    return User.query.filter(func.lower(User.email) == email).first()


def _send_best_effort(send: Callable[..., DispatchResult], *args, **kwargs) -> DispatchResult | None:
    """Run a dispatcher call without letting e-mail trouble fail the calling flow."""

    try:
        return send(*args, **kwargs)
    except Exception:
        logger.exception("Email dispatch failed")
        db.session.rollback()
        return None


def _password_field(payload: dict) -> str:
    password = payload.get("password") or ""
    if not isinstance(password, str):
        raise BadRequest("Field 'password' must be a string.")
    return password


def _dispatcher() -> EmailDispatcher:
    return EmailDispatcher(current_settings(), db.session)


@auth_bp.route("/register", methods=["POST"])
def register() -> tuple:
    """Register a new user and send the verification e-mail."""
    payload = parse_json_request(request)
    email = require_email(payload.get("email"))
    password = _password_field(payload)
    name = optional_string(payload, "name")

    problems = password_problems(password)
    if problems:
        raise BadRequest(" ".join(problems))

    if _find_user_by_email(email) is not None:
        raise Conflict("A user with that email already exists.")

    user = User(email=email, name=name, role="USER")
    user.set_password(password)
    token = user.issue_verification_token()
    db.session.add(user)
    db.session.commit()
    logger.info("Registered user %s", user.id)

    result = _send_best_effort(
        _dispatcher().send_verification_email,
        user.email,
        user.name,
        current_settings().verification_url(token, user.email),
        user_id=user.id,
    )

    return (
        jsonify(
            {
                "message": "Account created. Check your email to activate it.",
                "user": user.to_dict(),
                "email_sent": bool(result and result.ok),
            }
        ),
        HTTPStatus.CREATED,
    )


@auth_bp.route("/login", methods=["POST"])
def login() -> tuple:
    """Authenticate a user and return a JWT access token."""
    payload = parse_json_request(request)
    email = (optional_string(payload, "email") or "").lower()
    password = _password_field(payload)

    if not email or not password:
        raise BadRequest("Email and password are required.")

    user = _find_user_by_email(email)
    if user is None or not user.is_active or not user.check_password(password):
        raise Unauthorized("Invalid email or password.")

    token = create_access_token(identity=str(user.id))
    return jsonify({"access_token": token, "user": user.to_dict()}), HTTPStatus.OK


@auth_bp.route("/verify-email", methods=["POST"])
def verify_email() -> tuple:
    """Consume a verification token and mark the address as verified."""
    payload = parse_json_request(request, required_keys=("token",))
    token = str(payload["token"])

    user = User.query.filter(
        User.email_verification_token == token,
        User.email_verification_expires > utcnow(),
    ).first()
    if user is None:
        raise BadRequest("Invalid or expired verification link. Request a new verification email.")

    user.mark_email_verified()
    db.session.commit()
    return jsonify({"message": "Email verified. You can now log in."}), HTTPStatus.OK


@auth_bp.route("/resend-verification", methods=["POST"])
def resend_verification() -> tuple:
    """Issue a fresh verification token and e-mail it."""
    payload = parse_json_request(request)
    email = require_email(payload.get("email"))

    user = _find_user_by_email(email)
    if user is None:
        raise NotFound("No user found with this email.")
    if user.is_email_verified:
        return jsonify({"message": "Your email is already verified."}), HTTPStatus.OK

    token = user.issue_verification_token()
    db.session.commit()

    _send_best_effort(
        _dispatcher().send_verification_email,
        user.email,
        user.name,
        current_settings().verification_url(token, user.email),
        user_id=user.id,
    )
    return jsonify({"message": "Verification email sent. Check your inbox and spam folder."}), HTTPStatus.OK


@auth_bp.route("/forgot-password", methods=["POST"])
def forgot_password() -> tuple:
    """Send a reset link; the response never reveals whether the user exists."""
    payload = parse_json_request(request)
    email = require_email(payload.get("email"))

    user = _find_user_by_email(email)
    if user is None:
        logger.info("Password reset requested for unknown email")
        return jsonify({"message": FORGOT_PASSWORD_MESSAGE}), HTTPStatus.OK

    token = user.issue_reset_token()
    db.session.commit()

    _send_best_effort(
        _dispatcher().send_password_reset_email,
        user.email,
        user.name,
        current_settings().reset_url(token),
        user_id=user.id,
    )
    return jsonify({"message": FORGOT_PASSWORD_MESSAGE}), HTTPStatus.OK


@auth_bp.route("/reset-password", methods=["POST"])
def reset_password() -> tuple:
    """Consume a reset token and store the new password."""
    payload = parse_json_request(request, required_keys=("token", "password"))
    token = str(payload["token"])
    password = _password_field(payload)
    confirm = payload.get("confirmPassword", payload.get("confirm_password"))

    problems = password_problems(password)
    if confirm is not None and confirm != password:
        problems.append("Passwords do not match.")
    if problems:
        raise BadRequest(" ".join(problems))

    user = User.query.filter(
        User.reset_password_token == token,
        User.reset_password_expires > utcnow(),
    ).first()
    if user is None:
        raise BadRequest("Invalid or expired token. Request a new password reset.")

    user.reset_password(password)
    db.session.commit()
    return jsonify({"message": "Password reset. You can now log in with your new password."}), HTTPStatus.OK

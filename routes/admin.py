"""Admin blueprint for e-mail logs, test sends and resends."""

from __future__ import annotations

import math

from flask import Blueprint, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from werkzeug.exceptions import BadRequest, Forbidden, Unauthorized

from mail.dispatcher import EmailDispatcher
from mail.resend import ResendOrchestrator
from mail.settings import current_settings
from mail.status import parse_status, parse_type
from models import db
from models.email_log import EmailLog
from models.user import User
from utils.request_validation import optional_string, parse_json_request, require_email

admin_bp = Blueprint("admin", __name__)

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def _get_current_user() -> User | None:
    try:
        identity = get_jwt_identity()
    except RuntimeError:
        return None
    if identity is None:
        return None
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        return None
    return db.session.get(User, user_id)


def _require_admin() -> User:
    user = _get_current_user()
    if user is None:
        raise Unauthorized("User not found.")
    if not user.is_admin:
        raise Forbidden("Admin privileges required.")
    return user


def _int_arg(name: str, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        value = default
    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value


def _dispatcher() -> EmailDispatcher:
    return EmailDispatcher(current_settings(), db.session)


@admin_bp.route("/email-logs", methods=["GET"])
@jwt_required()
def list_email_logs():
    """Return e-mail logs, newest first, with optional filters."""

    _require_admin()

    page = _int_arg("page", 1)
    limit = _int_arg("limit", DEFAULT_PAGE_SIZE, maximum=MAX_PAGE_SIZE)

    query = EmailLog.query
    # Unknown status or type values are ignored rather than rejected.
    status = parse_status(request.args.get("status")) if request.args.get("status") else None
    if status is not None:
        query = query.filter(EmailLog.status == status)
    email_type = parse_type(request.args.get("type")) if request.args.get("type") else None
    if email_type is not None:
        query = query.filter(EmailLog.email_type == email_type)
    email = (request.args.get("email") or "").strip().lower()
    if email:
        query = query.filter(EmailLog.to_email.contains(email, autoescape=True))

    total = query.count()
    logs = (
        query.order_by(EmailLog.created_at.desc(), EmailLog.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    return jsonify(
        {
            "logs": [log.to_dict() for log in logs],
            "total": total,
            "pages": math.ceil(total / limit),
            "currentPage": page,
        }
    )


@admin_bp.route("/email-logs/test", methods=["POST"])
@jwt_required()
def send_test_email():
    """Send a verification- or reset-style test e-mail."""

    admin = _require_admin()
    payload = parse_json_request(request)
    email = require_email(payload.get("email"))
    kind = "reset" if payload.get("type") == "reset" else "verification"

    result = _dispatcher().send_test_email(
        email,
        optional_string(payload, "name"),
        kind=kind,
        user_id=admin.id,
    )
    return jsonify({"message": "Test email processed.", "details": result.to_dict()})


@admin_bp.route("/email-logs/resend", methods=["POST"])
@jwt_required()
def resend_email():
    """Re-send the e-mail recorded by an existing log."""

    _require_admin()
    payload = parse_json_request(request, allow_empty=True)
    log_id = payload.get("logId")
    if log_id in (None, ""):
        raise BadRequest("logId is required.")

    result = ResendOrchestrator(_dispatcher(), db.session).resend(log_id)
    return jsonify({"message": "Email resent.", "details": result.to_dict()})

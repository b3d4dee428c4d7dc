"""Inbound MailerSend delivery webhooks."""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from mail.settings import current_settings
from mail.webhooks import WebhookIngestor
from models import db

webhooks_bp = Blueprint("webhooks", __name__)


@webhooks_bp.route("/mailersend", methods=["POST"])
def mailersend_webhook():
    """Verify a MailerSend event and apply it to the matching e-mail logs."""

    settings = current_settings()
    payload = request.get_data(cache=True)
    signature = request.headers.get(settings.signature_header)

    outcome = WebhookIngestor(settings, db.session).handle(payload, signature)
    return jsonify(outcome.to_dict())

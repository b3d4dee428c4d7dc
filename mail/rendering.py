"""Jinja2 rendering of the transactional e-mail bodies."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

TEMPLATE_DIR = Path(__file__).resolve().parent / "templates" / "email"

BRAND = "AI Crypto Trading"
VERIFICATION_SUBJECT = f"Verificação de Email - {BRAND}"
PASSWORD_RESET_SUBJECT = f"Redefinição de Senha - {BRAND}"

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    undefined=StrictUndefined,
    trim_blocks=True,
    lstrip_blocks=True,
)


@dataclass(frozen=True)
class RenderedEmail:
    subject: str
    html: str
    text: str


def render(template: str, subject: str, **context) -> RenderedEmail:
    """Render ``<template>.html`` and ``<template>.txt`` with ``context``."""

    context.setdefault("brand", BRAND)
    context.setdefault("year", datetime.now(UTC).year)
    html = _environment.get_template(f"{template}.html").render(subject=subject, **context)
    text = _environment.get_template(f"{template}.txt").render(subject=subject, **context)
    return RenderedEmail(subject=subject, html=html, text=text)


def verification_email(name: str, verification_url: str, subject: str = VERIFICATION_SUBJECT, notice=None) -> RenderedEmail:
    return render("verification", subject, name=name, action_url=verification_url, notice=notice)


def password_reset_email(name: str, reset_url: str, subject: str = PASSWORD_RESET_SUBJECT, notice=None) -> RenderedEmail:
    return render("password_reset", subject, name=name, action_url=reset_url, notice=notice)

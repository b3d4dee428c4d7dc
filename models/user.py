"""User model definition."""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from . import db


ROLES = ("USER", "ADMIN")
VERIFICATION_TOKEN_TTL = timedelta(hours=24)
RESET_TOKEN_TTL = timedelta(hours=1)


def utcnow() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class User(db.Model):
    """Represents a platform user."""

    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(255), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(
        db.Enum(*ROLES, name="user_role"),
        nullable=False,
        default="USER",
        server_default=db.text("'USER'"),
    )
    email_verification_token = db.Column(db.String(255), nullable=True, index=True)
    email_verification_expires = db.Column(db.DateTime, nullable=True)
    reset_password_token = db.Column(db.String(255), nullable=True, index=True)
    reset_password_expires = db.Column(db.DateTime, nullable=True)
    email_verified_at = db.Column(db.DateTime, nullable=True)
    is_active = db.Column(
        db.Boolean,
        nullable=False,
        default=True,
        server_default=db.text("true"),
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    email_logs = db.relationship(
        "EmailLog",
        back_populates="user",
        lazy="dynamic",
        passive_deletes=True,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == "ADMIN"

    @property
    def is_email_verified(self) -> bool:
        return self.email_verified_at is not None

    def set_password(self, password: str) -> None:
        """Hash and store the password."""

        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a password against the stored hash."""

        return check_password_hash(self.password_hash, password)

    def issue_verification_token(self, now: Optional[datetime] = None) -> str:
        """Replace any verification token with a fresh one and return it."""

        now = now or utcnow()
        self.email_verification_token = uuid.uuid4().hex
        self.email_verification_expires = now + VERIFICATION_TOKEN_TTL
        return self.email_verification_token

    def issue_reset_token(self, now: Optional[datetime] = None) -> str:
        """Replace any password reset token with a fresh one and return it."""

        now = now or utcnow()
        self.reset_password_token = str(uuid.uuid4())
        self.reset_password_expires = now + RESET_TOKEN_TTL
        return self.reset_password_token

    def mark_email_verified(self, now: Optional[datetime] = None) -> None:
        """Record the verification and consume the token."""

        self.email_verified_at = now or utcnow()
        self.email_verification_token = None
        self.email_verification_expires = None

    def reset_password(self, password: str) -> None:
        """Store a new password and consume the reset token."""

        self.set_password(password)
        self.reset_password_token = None
        self.reset_password_expires = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "email_verified": self.is_email_verified,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<User {self.email}>"

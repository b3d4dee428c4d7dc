"""EmailLog model definition."""

from mail.status import EmailStatus, EmailType

from . import db
from .user import utcnow


class EmailLog(db.Model):
    """Audit record of one e-mail send attempt and its delivery status."""

    __tablename__ = "email_logs"
    __table_args__ = (
        db.Index("ix_email_logs_to_email_created_at", "to_email", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    to_email = db.Column(db.String(255), nullable=False)
    to_name = db.Column(db.String(255), nullable=True)
    email_type = db.Column(
        db.Enum(EmailType, name="email_type", native_enum=False, length=32),
        nullable=False,
        default=EmailType.OTHER,
    )
    subject = db.Column(db.String(512), nullable=False)
    status = db.Column(
        db.Enum(EmailStatus, name="email_status", native_enum=False, length=32),
        nullable=False,
        default=EmailStatus.PENDING,
        index=True,
    )
    status_details = db.Column(db.Text, nullable=True)
    provider_message_id = db.Column(db.String(255), nullable=True, index=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    user = db.relationship("User", back_populates="email_logs")

    def append_detail(self, detail: str | None) -> None:
        """Append ``detail`` to the free-text status details."""

        if not detail:
            return
        if self.status_details and detail in self.status_details.split(" | "):
            return
        if self.status_details:
            self.status_details = f"{self.status_details} | {detail}"
        else:
            self.status_details = detail

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "toEmail": self.to_email,
            "toName": self.to_name,
            "emailType": self.email_type.value if self.email_type else None,
            "subject": self.subject,
            "status": self.status.value if self.status else None,
            "statusDetails": self.status_details,
            "providerMessageId": self.provider_message_id,
            "userId": self.user_id,
            "user": (
                {"id": self.user.id, "name": self.user.name, "email": self.user.email}
                if self.user is not None
                else None
            ),
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self) -> str:
        return f"<EmailLog id={self.id} type={self.email_type} status={self.status}>"

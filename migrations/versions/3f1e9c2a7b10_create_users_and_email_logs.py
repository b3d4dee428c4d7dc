"""Create users and email logs tables.

Revision ID: 3f1e9c2a7b10
Revises:
Create Date: 2025-06-02 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f1e9c2a7b10"
down_revision = None
branch_labels = None
depends_on = None


USER_ROLE_ENUM = "user_role"


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column(
            "role",
            sa.Enum("USER", "ADMIN", name=USER_ROLE_ENUM),
            nullable=False,
            server_default="USER",
        ),
        sa.Column("email_verification_token", sa.String(length=255), nullable=True),
        sa.Column("email_verification_expires", sa.DateTime(), nullable=True),
        sa.Column("reset_password_token", sa.String(length=255), nullable=True),
        sa.Column("reset_password_expires", sa.DateTime(), nullable=True),
        sa.Column("email_verified_at", sa.DateTime(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_index(
        "ix_users_email_verification_token", "users", ["email_verification_token"]
    )
    op.create_index("ix_users_reset_password_token", "users", ["reset_password_token"])

    op.create_table(
        "email_logs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("to_email", sa.String(length=255), nullable=False),
        sa.Column("to_name", sa.String(length=255), nullable=True),
        sa.Column("email_type", sa.String(length=32), nullable=False),
        sa.Column("subject", sa.String(length=512), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("status_details", sa.Text(), nullable=True),
        sa.Column("provider_message_id", sa.String(length=255), nullable=True),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_logs_status", "email_logs", ["status"])
    op.create_index("ix_email_logs_provider_message_id", "email_logs", ["provider_message_id"])
    op.create_index("ix_email_logs_user_id", "email_logs", ["user_id"])
    op.create_index(
        "ix_email_logs_to_email_created_at", "email_logs", ["to_email", "created_at"]
    )


def downgrade() -> None:
    op.drop_index("ix_email_logs_to_email_created_at", table_name="email_logs")
    op.drop_index("ix_email_logs_user_id", table_name="email_logs")
    op.drop_index("ix_email_logs_provider_message_id", table_name="email_logs")
    op.drop_index("ix_email_logs_status", table_name="email_logs")
    op.drop_table("email_logs")

    op.drop_index("ix_users_reset_password_token", table_name="users")
    op.drop_index("ix_users_email_verification_token", table_name="users")
    op.drop_table("users")
    sa.Enum(name=USER_ROLE_ENUM).drop(op.get_bind(), checkfirst=True)

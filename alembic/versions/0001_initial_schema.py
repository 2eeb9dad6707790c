"""Initial schema: admin users, access tokens and token audit log.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, UUID

# revision identifiers
revision = "0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "admin_users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("role", sa.String(32), nullable=False, server_default="admin"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("session_version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index("ix_admin_users_email", "admin_users", ["email"], unique=True)

    op.create_table(
        "access_tokens",
        sa.Column("jti", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column(
            "owner_id",
            UUID(as_uuid=True),
            sa.ForeignKey("admin_users.id"),
            nullable=False,
        ),
        sa.Column("tenant", sa.String(255), nullable=False),
        sa.Column("scopes", JSONB(), nullable=False),
        sa.Column("role", sa.String(32), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "status",
            sa.Enum("active", "revoked", name="access_token_status"),
            nullable=False,
            server_default="active",
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("revoked_by", UUID(as_uuid=True), nullable=True),
    )
    op.create_index("ix_access_tokens_expires_at", "access_tokens", ["expires_at"])
    op.create_index(
        "ix_access_tokens_owner_tenant_created",
        "access_tokens",
        ["owner_id", "tenant", "created_at"],
    )
    op.create_index("ix_access_tokens_jti_status", "access_tokens", ["jti", "status"])

    op.create_table(
        "token_audit_log",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("token_jti", sa.String(64), nullable=False),
        sa.Column("actor_id", UUID(as_uuid=True), nullable=False),
        sa.Column(
            "action",
            sa.Enum("created", "rotated", "revoked", name="token_audit_action"),
            nullable=False,
        ),
        sa.Column("details", JSONB(), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
    )
    op.create_index("ix_token_audit_log_token_jti", "token_audit_log", ["token_jti"])
    op.create_index(
        "ix_token_audit_log_jti_created",
        "token_audit_log",
        ["token_jti", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_token_audit_log_jti_created", table_name="token_audit_log")
    op.drop_index("ix_token_audit_log_token_jti", table_name="token_audit_log")
    op.drop_table("token_audit_log")
    op.drop_index("ix_access_tokens_jti_status", table_name="access_tokens")
    op.drop_index("ix_access_tokens_owner_tenant_created", table_name="access_tokens")
    op.drop_index("ix_access_tokens_expires_at", table_name="access_tokens")
    op.drop_table("access_tokens")
    op.drop_index("ix_admin_users_email", table_name="admin_users")
    op.drop_table("admin_users")
    sa.Enum(name="token_audit_action").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="access_token_status").drop(op.get_bind(), checkfirst=True)

"""Add 'used' to the token audit action enum.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""

from alembic import op

# revision identifiers
revision = "0002"
down_revision = "0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Add 'used' to token_audit_action."""
    if op.get_bind().dialect.name == "postgresql":
        op.execute("ALTER TYPE token_audit_action ADD VALUE IF NOT EXISTS 'used'")


def downgrade() -> None:
    """Note: PostgreSQL doesn't support removing enum values.

    The 'used' action will remain but won't be written after downgrade.
    """
    pass

"""Add permission_audit_log for authorization decisions.

Revision ID: 002
Revises: 001
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "permission_audit_log",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("permission_code", sa.String(255), nullable=False),
        sa.Column("allowed", sa.Boolean(), nullable=False),
        sa.Column("reason", sa.String(20), nullable=False),
        sa.Column("matched_grant_id", sa.UUID(), nullable=True),
        sa.Column("endpoint", sa.String(2048), nullable=True),
        sa.Column("method", sa.String(10), nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("user_agent", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_permission_audit_log_user_id", "permission_audit_log", ["user_id"])
    op.create_index("ix_permission_audit_log_created_at", "permission_audit_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("permission_audit_log")

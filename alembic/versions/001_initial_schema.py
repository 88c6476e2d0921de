"""Initial schema - permission catalog and direct grants.

Revision ID: 001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "permission",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("code", sa.String(255), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("module", sa.String(80), nullable=False),
        sa.Column("resource", sa.String(80), nullable=False),
        sa.Column("action", sa.String(80), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("metadata", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_permission_code", "permission", ["code"], unique=True)
    op.create_index("ix_permission_module_resource", "permission", ["module", "resource"])

    op.create_table(
        "user_direct_permission",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column(
            "permission_id",
            sa.UUID(),
            sa.ForeignKey("permission.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("effect", sa.String(10), nullable=False),
        sa.Column("conditions", JSONB(), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("granted_by", sa.String(255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("effect IN ('allow', 'deny')", name="ck_user_direct_permission_effect"),
    )
    op.create_index(
        "ix_user_direct_permission_user_permission",
        "user_direct_permission",
        ["user_id", "permission_id"],
        unique=True,
    )
    op.create_index("ix_user_direct_permission_user_id", "user_direct_permission", ["user_id"])
    op.create_index(
        "ix_user_direct_permission_permission_id", "user_direct_permission", ["permission_id"]
    )
    op.create_index(
        "ix_user_direct_permission_expires_at", "user_direct_permission", ["expires_at"]
    )

    # Permissions guarding the admin API itself
    op.execute("""
        INSERT INTO permission
            (id, code, name, module, resource, action, is_system, metadata, created_at)
        VALUES
        (gen_random_uuid(), 'rbac:permission:read', 'Read permissions',
         'rbac', 'permission', 'read', true, '{}'::jsonb, now()),
        (gen_random_uuid(), 'rbac:permission:manage', 'Manage permissions',
         'rbac', 'permission', 'manage', true, '{}'::jsonb, now()),
        (gen_random_uuid(), 'rbac:direct-permission:read', 'Read direct grants',
         'rbac', 'direct-permission', 'read', true, '{}'::jsonb, now()),
        (gen_random_uuid(), 'rbac:direct-permission:manage', 'Manage direct grants',
         'rbac', 'direct-permission', 'manage', true, '{}'::jsonb, now())
    """)


def downgrade() -> None:
    op.drop_table("user_direct_permission")
    op.drop_table("permission")

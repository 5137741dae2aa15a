"""Initial schema - resources, scopes, grants, check log and identity tables.

Revision ID: 001
Revises:
Create Date: 2025-03-04

"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "resource",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("client_id", sa.String(200), nullable=False),
        sa.Column("client_name", sa.String(200), nullable=True),
        sa.Column("code", sa.String(200), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("resource_type", sa.String(50), nullable=False),
        sa.Column(
            "parent_id",
            sa.UUID(),
            sa.ForeignKey("resource.id", ondelete="RESTRICT"),
            nullable=True,
        ),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("uri", sa.String(500), nullable=True),
    )
    op.create_index("ix_resource_client_code", "resource", ["client_id", "code"], unique=True)
    op.create_index("ix_resource_parent_id", "resource", ["parent_id"])

    op.create_table(
        "scope",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("code", sa.String(100), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_scope_code", "scope", ["code"], unique=True)
    # Codes are matched case-insensitively, so they must be unique ignoring case.
    op.create_index("ux_scope_code_folded", "scope", [sa.text("lower(code)")], unique=True)

    op.create_table(
        "permission_grant",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("subject_type", sa.String(20), nullable=False),
        sa.Column("subject_id", sa.String(200), nullable=False),
        sa.Column("subject_name", sa.String(200), nullable=True),
        sa.Column(
            "resource_id",
            sa.UUID(),
            sa.ForeignKey("resource.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("scopes", sa.Text(), nullable=False),
        sa.Column("inherit_to_children", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("granted_by", sa.String(200), nullable=True),
        sa.Column("granted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("tenant_id", sa.UUID(), nullable=True),
        sa.CheckConstraint(
            "subject_type IN ('User', 'Group', 'Organization', 'Role')",
            name="ck_permission_grant_subject_type",
        ),
    )
    op.create_index(
        "ix_permission_grant_subject",
        "permission_grant",
        ["subject_type", "subject_id"],
    )
    op.create_index("ix_permission_grant_resource_id", "permission_grant", ["resource_id"])
    op.create_index(
        "ux_permission_grant_active_key",
        "permission_grant",
        ["subject_type", "subject_id", "resource_id"],
        unique=True,
        postgresql_where=sa.text("is_enabled"),
    )

    op.create_table(
        "permission_check_log",
        sa.Column("id", sa.UUID(), primary_key=True),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("client_id", sa.String(200), nullable=False),
        sa.Column("subject_id", sa.String(200), nullable=False),
        sa.Column("resource_code", sa.String(200), nullable=False),
        sa.Column("requested_scope", sa.String(100), nullable=False),
        sa.Column("granted_scopes", sa.Text(), nullable=False),
        sa.Column("allowed", sa.Boolean(), nullable=False),
        sa.Column("latency_ms", sa.Integer(), nullable=False),
        sa.Column("error_code", sa.String(100), nullable=True),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(500), nullable=True),
    )
    op.create_index("ix_permission_check_log_checked_at", "permission_check_log", ["checked_at"])

    # Identity tables read by the membership resolver.
    op.create_table(
        "app_user",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("username", sa.String(200), nullable=True),
        sa.Column("display_name", sa.String(200), nullable=True),
    )
    op.create_table(
        "app_group",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
    )
    op.create_table(
        "app_role",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
    )
    op.create_table(
        "organization",
        sa.Column("id", sa.String(200), primary_key=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column(
            "parent_id",
            sa.String(200),
            sa.ForeignKey("organization.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "inherit_parent_permissions",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
    )
    op.create_table(
        "group_member",
        sa.Column(
            "group_id",
            sa.String(200),
            sa.ForeignKey("app_group.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            sa.String(200),
            sa.ForeignKey("app_user.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "inherit_group_permissions",
            sa.Boolean(),
            nullable=False,
            server_default=sa.true(),
        ),
    )
    op.create_index("ix_group_member_user_id", "group_member", ["user_id"])
    op.create_table(
        "organization_member",
        sa.Column(
            "organization_id",
            sa.String(200),
            sa.ForeignKey("organization.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "user_id",
            sa.String(200),
            sa.ForeignKey("app_user.id", ondelete="CASCADE"),
            primary_key=True,
        ),
    )
    op.create_index("ix_organization_member_user_id", "organization_member", ["user_id"])

    op.execute("""
        INSERT INTO scope (id, code, name, sort_order) VALUES
        (gen_random_uuid(), 'read', 'Read', 0),
        (gen_random_uuid(), 'write', 'Write', 1),
        (gen_random_uuid(), 'delete', 'Delete', 2),
        (gen_random_uuid(), 'all', 'All', 3)
    """)


def downgrade() -> None:
    op.drop_table("organization_member")
    op.drop_table("group_member")
    op.drop_table("organization")
    op.drop_table("app_role")
    op.drop_table("app_group")
    op.drop_table("app_user")
    op.drop_table("permission_check_log")
    op.drop_table("permission_grant")
    op.drop_table("scope")
    op.drop_table("resource")

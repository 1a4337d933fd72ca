# mypy: ignore-errors
"""
Migration Alembic pour créer les tables du drive.

Crée les tables utilisateurs, noeuds, versions, fichiers, rattachements entreprise et identités
externes, avec les index utilisés par la suppression des comptes (parent, créateur, propriétaire,
marqueur de suppression en cours).
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les tables du drive et leurs index."""
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("first_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("last_name", sa.String(length=255), nullable=False, server_default=""),
        sa.Column("deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column(
            "delete_process_started_epoch", sa.BigInteger(), nullable=False, server_default="0"
        ),
    )
    op.create_index("ix_users_delete_epoch", "users", ["delete_process_started_epoch"])

    op.create_table(
        "drive_items",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("parent_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("is_directory", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("creator", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("company_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("is_in_trash", sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    op.create_index("ix_drive_items_parent", "drive_items", ["parent_id"])
    op.create_index("ix_drive_items_creator", "drive_items", ["creator"])

    op.create_table(
        "file_versions",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("drive_item_id", sa.String(length=64), nullable=False),
        sa.Column("creator_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("file_id", sa.String(length=64), nullable=True),
        sa.Column("date_added", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_index("ix_file_versions_item", "file_versions", ["drive_item_id"])
    op.create_index("ix_file_versions_creator", "file_versions", ["creator_id"])

    op.create_table(
        "files",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("company_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("filename", sa.String(length=512), nullable=False, server_default=""),
        sa.Column("size", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_index("ix_files_user", "files", ["user_id"])

    op.create_table(
        "company_users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("group_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("role", sa.String(length=32), nullable=False, server_default="member"),
    )
    op.create_index("ix_company_users_user", "company_users", ["user_id"])

    op.create_table(
        "external_users",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("service_id", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("external_id", sa.String(length=255), nullable=False, server_default=""),
    )
    op.create_index("ix_external_users_user", "external_users", ["user_id"])


def downgrade() -> None:
    """Supprime les tables du drive."""
    for table in (
        "external_users",
        "company_users",
        "files",
        "file_versions",
        "drive_items",
        "users",
    ):
        op.drop_table(table)

"""users, galleries and gallery media

Revision ID: 0001_initial
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(length=120), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "galleries",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=sa.text("''")),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_galleries_owner_id", "galleries", ["owner_id"], unique=False)
    op.create_index("ix_galleries_owner_created", "galleries", ["owner_id", "created_at"], unique=False)

    op.create_table(
        "gallery_media",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("gallery_id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("url", sa.String(length=1200), nullable=False),
        sa.Column("storage_key", sa.String(length=1024), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("owner_id", sa.Uuid(), nullable=False),
        sa.Column("is_favorite", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("type in ('image','video')", name="ck_gallery_media_type"),
        sa.ForeignKeyConstraint(["gallery_id"], ["galleries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("storage_key"),
    )
    op.create_index("ix_gallery_media_gallery_id", "gallery_media", ["gallery_id"], unique=False)
    op.create_index("ix_gallery_media_owner_id", "gallery_media", ["owner_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_gallery_media_owner_id", table_name="gallery_media")
    op.drop_index("ix_gallery_media_gallery_id", table_name="gallery_media")
    op.drop_table("gallery_media")
    op.drop_index("ix_galleries_owner_created", table_name="galleries")
    op.drop_index("ix_galleries_owner_id", table_name="galleries")
    op.drop_table("galleries")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")

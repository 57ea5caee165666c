"""Create post, ephemeral_post and file_info tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "post",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("user.id"), nullable=False),
        sa.Column("channel_id", sa.String(length=32), sa.ForeignKey("channel.id"), nullable=False),
        sa.Column("root_id", sa.String(length=32), nullable=True),
        sa.Column("type", sa.String(length=64), nullable=False, server_default=""),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("file_ids", sa.JSON(), nullable=False),
        sa.Column("props", sa.JSON(), nullable=False),
        sa.Column("create_at", sa.DateTime(), nullable=False),
        sa.Column("update_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_post_user_id"), "post", ["user_id"])
    op.create_index(op.f("ix_post_channel_id"), "post", ["channel_id"])

    op.create_table(
        "ephemeral_post",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("user_id", sa.String(length=32), nullable=False),
        sa.Column("channel_id", sa.String(length=32), nullable=False),
        sa.Column("message", sa.Text(), nullable=False, server_default=""),
        sa.Column("create_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_ephemeral_post_user_id"), "ephemeral_post", ["user_id"])

    op.create_table(
        "file_info",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("channel_id", sa.String(length=32), sa.ForeignKey("channel.id"), nullable=False),
        sa.Column("name", sa.String(length=512), nullable=False),
        sa.Column("path", sa.String(length=512), nullable=False),
        sa.Column("size", sa.Integer(), nullable=False),
        sa.Column("mime_type", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("path"),
    )
    op.create_index(op.f("ix_file_info_channel_id"), "file_info", ["channel_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_file_info_channel_id"), table_name="file_info")
    op.drop_table("file_info")
    op.drop_index(op.f("ix_ephemeral_post_user_id"), table_name="ephemeral_post")
    op.drop_table("ephemeral_post")
    op.drop_index(op.f("ix_post_channel_id"), table_name="post")
    op.drop_index(op.f("ix_post_user_id"), table_name="post")
    op.drop_table("post")

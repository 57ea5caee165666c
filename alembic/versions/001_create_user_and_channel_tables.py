"""Create user, channel and channel_member tables

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "user",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("username", sa.String(length=64), nullable=False),
        sa.Column("roles", sa.String(length=256), nullable=False, server_default="system_user"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_user_username"), "user", ["username"], unique=True)

    op.create_table(
        "channel",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("name", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=256), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "channel_member",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("channel_id", sa.String(length=32), sa.ForeignKey("channel.id"), nullable=False),
        sa.Column("user_id", sa.String(length=32), sa.ForeignKey("user.id"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("channel_id", "user_id", name="uq_channel_member"),
    )
    op.create_index(op.f("ix_channel_member_channel_id"), "channel_member", ["channel_id"])
    op.create_index(op.f("ix_channel_member_user_id"), "channel_member", ["user_id"])


def downgrade() -> None:
    op.drop_index(op.f("ix_channel_member_user_id"), table_name="channel_member")
    op.drop_index(op.f("ix_channel_member_channel_id"), table_name="channel_member")
    op.drop_table("channel_member")
    op.drop_table("channel")
    op.drop_index(op.f("ix_user_username"), table_name="user")
    op.drop_table("user")

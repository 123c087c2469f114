"""Comment replies and moderation columns, one-to-one chat.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: str | None = "0001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _user_fk(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.Uuid(),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    with op.batch_alter_table("comments") as batch:
        batch.add_column(sa.Column("parent_id", sa.Uuid(), nullable=True))
        batch.add_column(sa.Column("frozen_by", sa.Uuid(), nullable=True))
        batch.add_column(sa.Column("restored_at", sa.DateTime(timezone=True), nullable=True))
        batch.add_column(sa.Column("restored_by", sa.Uuid(), nullable=True))
        batch.create_foreign_key(
            "fk_comments_parent_id", "comments", ["parent_id"], ["id"], ondelete="CASCADE"
        )
        batch.create_index("ix_comments_parent_id", ["parent_id"])

    op.create_table(
        "chats",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        _user_fk("low_user_id"),
        _user_fk("high_user_id"),
        sa.UniqueConstraint("low_user_id", "high_user_id", name="uq_chats_pair"),
    )
    op.create_index("ix_chats_low_user_id", "chats", ["low_user_id"])
    op.create_index("ix_chats_high_user_id", "chats", ["high_user_id"])

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column(
            "chat_id",
            sa.Uuid(),
            sa.ForeignKey("chats.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("sender_id"),
        sa.Column("content", sa.Text(), nullable=False),
    )
    op.create_index("ix_chat_messages_chat_id", "chat_messages", ["chat_id"])


def downgrade() -> None:
    op.drop_table("chat_messages")
    op.drop_table("chats")

    with op.batch_alter_table("comments") as batch:
        batch.drop_index("ix_comments_parent_id")
        batch.drop_constraint("fk_comments_parent_id", type_="foreignkey")
        batch.drop_column("restored_by")
        batch.drop_column("restored_at")
        batch.drop_column("frozen_by")
        batch.drop_column("parent_id")

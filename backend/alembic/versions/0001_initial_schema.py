"""Initial schema: users, social graph, posts, comments and revoked tokens.

Revision ID: 0001
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

user_role = sa.Enum("user", "admin", "superAdmin", name="user_role", create_constraint=True)
user_provider = sa.Enum("system", "google", name="user_provider", create_constraint=True)
post_availability = sa.Enum(
    "public",
    "friends",
    "private",
    "specificFriends",
    name="post_availability",
    create_constraint=True,
)
post_allow_comment = sa.Enum("allow", "deny", name="post_allow_comment", create_constraint=True)


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
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=True),
        sa.Column("provider", user_provider, nullable=False),
        sa.Column("role", user_role, nullable=False),
        sa.Column("change_credentials_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("confirm_email_otp", sa.String(255), nullable=True),
        sa.Column("reset_password_otp", sa.String(255), nullable=True),
        sa.Column("confirmed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("frozen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("frozen_by", sa.Uuid(), nullable=True),
        sa.Column("freeze_reason", sa.Text(), nullable=True),
        sa.Column("restored_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("restored_by", sa.Uuid(), nullable=True),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint(
            "provider != 'system' OR password_hash IS NOT NULL",
            name="ck_users_system_password",
        ),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_frozen_at", "users", ["frozen_at"])

    for table, other in (("user_friends", "friend_id"), ("user_blocks", "blocked_id")):
        op.create_table(
            table,
            sa.Column(
                "user_id",
                sa.Uuid(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column(
                other,
                sa.Uuid(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                primary_key=True,
            ),
        )

    op.create_table(
        "revoked_tokens",
        sa.Column("jti", sa.String(64), primary_key=True),
        _user_fk("user_id"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_revoked_tokens_user_id", "revoked_tokens", ["user_id"])
    op.create_index("ix_revoked_tokens_expires_at", "revoked_tokens", ["expires_at"])

    op.create_table(
        "friend_requests",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        _user_fk("sender_id"),
        _user_fk("receiver_id"),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("sender_id", "receiver_id", name="uq_friend_requests_pair"),
    )
    op.create_index("ix_friend_requests_sender_id", "friend_requests", ["sender_id"])
    op.create_index("ix_friend_requests_receiver_id", "friend_requests", ["receiver_id"])

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        _user_fk("author_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("availability", post_availability, nullable=False),
        sa.Column("allow_comment", post_allow_comment, nullable=False),
        sa.Column("assets_folder_id", sa.String(64), nullable=True),
        sa.Column("frozen_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("frozen_by", sa.Uuid(), nullable=True),
        sa.Column("restored_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("restored_by", sa.Uuid(), nullable=True),
    )
    op.create_index("ix_posts_author_id", "posts", ["author_id"])
    op.create_index("ix_posts_availability", "posts", ["availability"])

    for table in ("post_tags", "post_specific_friends", "post_likes"):
        op.create_table(
            table,
            sa.Column(
                "post_id",
                sa.Uuid(),
                sa.ForeignKey("posts.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column(
                "user_id",
                sa.Uuid(),
                sa.ForeignKey("users.id", ondelete="CASCADE"),
                primary_key=True,
            ),
        )

    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), primary_key=True),
        *_timestamps(),
        sa.Column(
            "post_id",
            sa.Uuid(),
            sa.ForeignKey("posts.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _user_fk("author_id"),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("frozen_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_comments_post_id", "comments", ["post_id"])


def downgrade() -> None:
    op.drop_table("comments")
    for table in ("post_likes", "post_specific_friends", "post_tags"):
        op.drop_table(table)
    op.drop_table("posts")
    op.drop_table("friend_requests")
    op.drop_table("revoked_tokens")
    op.drop_table("user_blocks")
    op.drop_table("user_friends")
    op.drop_table("users")

    bind = op.get_bind()
    for enum in (post_allow_comment, post_availability, user_role, user_provider):
        enum.drop(bind, checkfirst=True)

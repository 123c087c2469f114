"""Comment model - comments on a post and replies to them."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from socialhub.models.base import BaseModel, UTCDateTime
from socialhub.models.post import Post


class Comment(BaseModel):
    """A comment on a post. Visible exactly when its post is visible.

    A reply points at its parent comment through ``parent_id``; deleting a
    comment deletes its replies with it.
    """

    __tablename__ = "comments"

    post_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("posts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    author_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

    frozen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    frozen_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    restored_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    restored_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    post: Mapped[Post] = relationship(Post, lazy="raise_on_sql")

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

    def __repr__(self) -> str:
        return f"<Comment {self.id} on {self.post_id}>"

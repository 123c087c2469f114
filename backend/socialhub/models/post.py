"""Post model - user content with an availability (audience) setting."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import Column, Enum, ForeignKey, String, Table, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from socialhub.core.database import Base
from socialhub.models.base import BaseModel, UTCDateTime
from socialhub.models.user import User


class Availability(StrEnum):
    PUBLIC = "public"
    FRIENDS = "friends"
    PRIVATE = "private"
    SPECIFIC_FRIENDS = "specificFriends"


class AllowComment(StrEnum):
    ALLOW = "allow"
    DENY = "deny"


PostAvailability = Enum(
    *[a.value for a in Availability], name="post_availability", create_constraint=True
)
PostAllowComment = Enum(
    *[a.value for a in AllowComment], name="post_allow_comment", create_constraint=True
)


def _post_user_table(name: str) -> Table:
    return Table(
        name,
        Base.metadata,
        Column("post_id", Uuid, ForeignKey("posts.id", ondelete="CASCADE"), primary_key=True),
        Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )


post_tags = _post_user_table("post_tags")
post_specific_friends = _post_user_table("post_specific_friends")
post_likes = _post_user_table("post_likes")


class Post(BaseModel):
    """A post authored by a user.

    Who may read it is decided per request by
    ``socialhub.services.visibility.build_visibility_predicate``.
    """

    __tablename__ = "posts"

    author_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    availability: Mapped[str] = mapped_column(
        PostAvailability, nullable=False, default=Availability.PUBLIC, index=True
    )
    allow_comment: Mapped[str] = mapped_column(
        PostAllowComment, nullable=False, default=AllowComment.ALLOW
    )
    assets_folder_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    frozen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    frozen_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    restored_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    restored_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    tags: Mapped[list[User]] = relationship(User, secondary=post_tags, lazy="selectin")
    specific_friends: Mapped[list[User]] = relationship(
        User, secondary=post_specific_friends, lazy="selectin"
    )
    likes: Mapped[list[User]] = relationship(User, secondary=post_likes, lazy="selectin")

    @property
    def tag_ids(self) -> list[UUID]:
        return [user.id for user in self.tags]

    @property
    def specific_friend_ids(self) -> list[UUID]:
        return [user.id for user in self.specific_friends]

    @property
    def like_ids(self) -> list[UUID]:
        return [user.id for user in self.likes]

    def __repr__(self) -> str:
        return f"<Post {self.id} by {self.author_id}>"

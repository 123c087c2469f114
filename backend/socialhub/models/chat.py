"""One-to-one chat between two users and its messages."""

from uuid import UUID

from sqlalchemy import ForeignKey, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from socialhub.models.base import BaseModel


def participant_pair(first: UUID, second: UUID) -> tuple[UUID, UUID]:
    """Order two user ids the way ``Chat`` stores them."""
    return (first, second) if first < second else (second, first)


class Chat(BaseModel):
    """Conversation between exactly two users.

    The pair is stored ordered (``low_user_id < high_user_id``) so each pair
    of users has at most one chat.
    """

    __tablename__ = "chats"
    __table_args__ = (UniqueConstraint("low_user_id", "high_user_id", name="uq_chats_pair"),)

    low_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    high_user_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    @property
    def participant_ids(self) -> list[UUID]:
        return [self.low_user_id, self.high_user_id]

    def __repr__(self) -> str:
        return f"<Chat {self.low_user_id} <-> {self.high_user_id}>"


class ChatMessage(BaseModel):
    __tablename__ = "chat_messages"

    chat_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True
    )
    sender_id: Mapped[UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)

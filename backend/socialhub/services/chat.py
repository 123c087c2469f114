"""One-to-one chat between users.

Messages are stored first, then pushed to every live gateway connection of
both participants through the ``ConnectionRegistry``.
"""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.models.chat import Chat, ChatMessage, participant_pair
from socialhub.models.user import User
from socialhub.services.connections import ConnectionRegistry
from socialhub.services.errors import BadRequestError, NotFoundError
from socialhub.services.identity import SqlIdentityStore

logger = logging.getLogger(__name__)


def message_frame(frame_type: str, message: ChatMessage, **extra: Any) -> dict[str, Any]:
    return {
        "type": frame_type,
        "chat_id": str(message.chat_id),
        "message_id": str(message.id),
        "content": message.content,
        "sent_at": message.created_at.isoformat(),
        **extra,
    }


class ChatService:
    """Service for direct messages."""

    def __init__(self, session: AsyncSession, registry: ConnectionRegistry | None = None):
        self.session = session
        self.identities = SqlIdentityStore(session)
        self.registry = registry

    async def _find_chat(self, first: UUID, second: UUID) -> Chat | None:
        low, high = participant_pair(first, second)
        result = await self.session.execute(
            select(Chat).where(Chat.low_user_id == low, Chat.high_user_id == high)
        )
        return result.scalar_one_or_none()

    async def send_message(self, sender: User, receiver_id: UUID, content: str) -> ChatMessage:
        """Store a message from ``sender`` to ``receiver_id`` and fan it out.

        A missing or frozen receiver, or one that has blocked the sender, is
        reported as not found.
        """
        if receiver_id == sender.id:
            raise BadRequestError("Cannot send a message to yourself")
        if receiver_id in sender.blocked_ids:
            raise BadRequestError("Unblock this user to message them")
        receiver = await self.identities.find_by_id(receiver_id)
        if receiver is None or sender.id in receiver.blocked_ids:
            raise NotFoundError("User not found")

        chat = await self._find_chat(sender.id, receiver.id)
        if chat is None:
            low, high = participant_pair(sender.id, receiver.id)
            chat = Chat(low_user_id=low, high_user_id=high)
            self.session.add(chat)
            await self.session.flush()

        message = ChatMessage(chat_id=chat.id, sender_id=sender.id, content=content)
        self.session.add(message)
        await self.session.commit()
        logger.info(f"Message {message.id} sent in chat {chat.id}")

        if self.registry is not None:
            await self.registry.send_to(
                sender.id, message_frame("message_sent", message, to=str(receiver.id))
            )
            await self.registry.send_to(
                receiver.id, message_frame("new_message", message, **{"from": str(sender.id)})
            )
        return message

    async def get_chat(self, requester: User, other_id: UUID) -> tuple[Chat, list[ChatMessage]]:
        """The chat between ``requester`` and ``other_id`` with its messages, oldest first."""
        chat = await self._find_chat(requester.id, other_id)
        if chat is None:
            raise NotFoundError("Chat not found")
        result = await self.session.execute(
            select(ChatMessage)
            .where(ChatMessage.chat_id == chat.id)
            .order_by(ChatMessage.created_at)
        )
        return chat, list(result.scalars().all())

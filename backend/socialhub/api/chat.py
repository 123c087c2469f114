"""Direct message endpoints.

Messages sent here are also pushed to both participants' open gateway
connections, exactly like a ``send_message`` gateway frame.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.core import get_db
from socialhub.middleware import authentication
from socialhub.schemas.chat import ChatMessageResponse, ChatResponse, SendMessageRequest
from socialhub.services.chat import ChatService
from socialhub.services.session import ResolvedSession

router = APIRouter(prefix="/chat", tags=["chat"])


def get_chat_service(request: Request, db: AsyncSession = Depends(get_db)) -> ChatService:
    return ChatService(db, request.app.state.connections)


@router.get("/{user_id}", response_model=ChatResponse)
async def get_chat(
    user_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Conversation between the caller and ``user_id``."""
    chat, messages = await chat_service.get_chat(session.user, user_id)
    return ChatResponse(
        id=chat.id,
        participant_ids=chat.participant_ids,
        messages=[ChatMessageResponse.model_validate(message) for message in messages],
    )


@router.post(
    "/{user_id}",
    response_model=ChatMessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    user_id: UUID,
    data: SendMessageRequest,
    session: ResolvedSession = Depends(authentication()),
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatMessageResponse:
    message = await chat_service.send_message(session.user, user_id, data.content)
    return ChatMessageResponse.model_validate(message)

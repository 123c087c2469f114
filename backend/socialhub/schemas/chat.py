"""Pydantic schemas for one-to-one chat, over HTTP and the gateway."""

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=5000)


class SendMessageFrame(SendMessageRequest):
    """Gateway frame ``{"type": "send_message", "to": <user id>, "content": ...}``."""

    type: Literal["send_message"]
    to: UUID


class ChatMessageResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chat_id: UUID
    sender_id: UUID
    content: str
    created_at: datetime


class ChatResponse(BaseModel):
    """A chat with its messages, oldest first."""

    id: UUID
    participant_ids: list[UUID]
    messages: list[ChatMessageResponse]

"""Pydantic schemas for user API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from socialhub.models.user import Role


class UserResponse(BaseModel):
    """Response with user information."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    first_name: str
    last_name: str
    email: str
    role: Role
    provider: str
    confirmed_at: datetime | None
    last_login_at: datetime | None
    friend_ids: list[UUID] = []
    created_at: datetime


class FreezeRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class ChangeRoleRequest(BaseModel):
    role: Role


class FriendRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    sender_id: UUID
    receiver_id: UUID
    accepted_at: datetime | None
    created_at: datetime

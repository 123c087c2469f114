"""Pydantic schemas for posts and comments."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from socialhub.models.post import AllowComment, Availability


class PostCreate(BaseModel):
    """Schema for creating a post."""

    content: str = Field(..., min_length=1, max_length=50000)
    availability: Availability = Availability.PUBLIC
    allow_comment: AllowComment = AllowComment.ALLOW
    tags: list[UUID] = Field(default_factory=list)
    specific_friends: list[UUID] = Field(default_factory=list)


class PostUpdate(BaseModel):
    """Partial update of a post. Omitted fields keep their value; tags and
    specific friends are replaced wholesale when given."""

    content: str | None = Field(None, min_length=1, max_length=50000)
    availability: Availability | None = None
    allow_comment: AllowComment | None = None
    tags: list[UUID] | None = None
    specific_friends: list[UUID] | None = None


class PostResponse(BaseModel):
    """Schema for post response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    author_id: UUID
    content: str
    availability: Availability
    allow_comment: AllowComment
    tag_ids: list[UUID]
    specific_friend_ids: list[UUID]
    like_ids: list[UUID]
    created_at: datetime
    updated_at: datetime


class PostListResponse(BaseModel):
    """Paginated list of visible posts."""

    items: list[PostResponse]
    total: int
    page: int
    page_size: int
    pages: int


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=10000)


class CommentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    post_id: UUID
    author_id: UUID
    parent_id: UUID | None = None
    content: str
    created_at: datetime
    updated_at: datetime

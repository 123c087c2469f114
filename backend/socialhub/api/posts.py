"""Post API endpoints.

Reads accept anonymous callers; what they return is always narrowed to what
the caller may see.
"""

from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.core import get_db
from socialhub.middleware import authentication, optional_authentication
from socialhub.schemas.auth import MessageResponse
from socialhub.schemas.post import (
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from socialhub.services.post import PostService
from socialhub.services.session import ResolvedSession

router = APIRouter(prefix="/posts", tags=["posts"])


def get_post_service(db: AsyncSession = Depends(get_db)) -> PostService:
    """Dependency to get post service."""
    return PostService(db)


def _requester(session: ResolvedSession | None):
    return session.user if session else None


@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    data: PostCreate,
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    post = await post_service.create(
        session.user,
        content=data.content,
        availability=data.availability,
        allow_comment=data.allow_comment,
        tags=data.tags,
        specific_friends=data.specific_friends,
    )
    return PostResponse.model_validate(post)


@router.get("", response_model=PostListResponse)
async def list_posts(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
    session: ResolvedSession | None = Depends(optional_authentication()),
    post_service: PostService = Depends(get_post_service),
) -> PostListResponse:
    """List posts visible to the caller, newest first."""
    posts, total = await post_service.list_visible(_requester(session), page, page_size)
    pages = (total + page_size - 1) // page_size if total > 0 else 0
    return PostListResponse(
        items=[PostResponse.model_validate(post) for post in posts],
        total=total,
        page=page,
        page_size=page_size,
        pages=pages,
    )


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(
    post_id: UUID,
    session: ResolvedSession | None = Depends(optional_authentication()),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Get a post. Posts hidden from the caller are reported as not found."""
    post = await post_service.get_visible(_requester(session), post_id)
    return PostResponse.model_validate(post)


@router.patch("/{post_id}/like", response_model=PostResponse)
async def like_post(
    post_id: UUID,
    action: Literal["like", "unlike"] = Query("like"),
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    post = await post_service.set_like(session.user, post_id, liked=action == "like")
    return PostResponse.model_validate(post)


@router.delete("/{post_id}/freeze", response_model=MessageResponse)
async def freeze_post(
    post_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> MessageResponse:
    await post_service.set_frozen(session.user, post_id, frozen=True)
    return MessageResponse(message="Post frozen")


@router.patch("/{post_id}/unfreeze", response_model=MessageResponse)
async def unfreeze_post(
    post_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> MessageResponse:
    await post_service.set_frozen(session.user, post_id, frozen=False)
    return MessageResponse(message="Post restored")



@router.patch("/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: UUID,
    data: PostUpdate,
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> PostResponse:
    """Edit a post. Author only."""
    post = await post_service.update(
        session.user,
        post_id,
        content=data.content,
        availability=data.availability,
        allow_comment=data.allow_comment,
        tags=data.tags,
        specific_friends=data.specific_friends,
    )
    return PostResponse.model_validate(post)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    post_service: PostService = Depends(get_post_service),
) -> Response:
    """Delete a post together with its comments."""
    await post_service.delete(session.user, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

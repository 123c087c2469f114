"""Comment API endpoints, nested under a post.

A comment is only reachable through a post the caller can read.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.core import get_db
from socialhub.middleware import authentication, authorization, optional_authentication
from socialhub.models.user import Role
from socialhub.schemas.auth import MessageResponse
from socialhub.schemas.post import CommentCreate, CommentResponse, CommentUpdate
from socialhub.services.comment import CommentService
from socialhub.services.session import ResolvedSession

router = APIRouter(prefix="/posts/{post_id}/comments", tags=["comments"])

moderator = authorization(Role.ADMIN, Role.SUPER_ADMIN)


def get_comment_service(db: AsyncSession = Depends(get_db)) -> CommentService:
    return CommentService(db)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: UUID,
    data: CommentCreate,
    session: ResolvedSession = Depends(authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    comment = await comments.add(session.user, post_id, data.content)
    return CommentResponse.model_validate(comment)


@router.get("", response_model=list[CommentResponse])
async def list_comments(
    post_id: UUID,
    session: ResolvedSession | None = Depends(optional_authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> list[CommentResponse]:
    """Comments and replies of a post, oldest first."""
    found = await comments.list_for_post(session.user if session else None, post_id)
    return [CommentResponse.model_validate(comment) for comment in found]


@router.get("/{comment_id}", response_model=CommentResponse)
async def get_comment(
    post_id: UUID,
    comment_id: UUID,
    session: ResolvedSession | None = Depends(optional_authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    comment = await comments.get(session.user if session else None, post_id, comment_id)
    return CommentResponse.model_validate(comment)


@router.post(
    "/{comment_id}/reply",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reply_to_comment(
    post_id: UUID,
    comment_id: UUID,
    data: CommentCreate,
    session: ResolvedSession = Depends(authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    comment = await comments.add(session.user, post_id, data.content, parent_id=comment_id)
    return CommentResponse.model_validate(comment)


@router.patch("/{comment_id}", response_model=CommentResponse)
async def update_comment(
    post_id: UUID,
    comment_id: UUID,
    data: CommentUpdate,
    session: ResolvedSession = Depends(authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> CommentResponse:
    comment = await comments.update(session.user, post_id, comment_id, data.content)
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}/freeze", response_model=MessageResponse)
async def freeze_comment(
    post_id: UUID,
    comment_id: UUID,
    session: ResolvedSession = Depends(moderator),
    comments: CommentService = Depends(get_comment_service),
) -> MessageResponse:
    await comments.set_frozen(session.user, post_id, comment_id, frozen=True)
    return MessageResponse(message="Comment frozen")


@router.patch("/{comment_id}/unfreeze", response_model=MessageResponse)
async def unfreeze_comment(
    post_id: UUID,
    comment_id: UUID,
    session: ResolvedSession = Depends(moderator),
    comments: CommentService = Depends(get_comment_service),
) -> MessageResponse:
    await comments.set_frozen(session.user, post_id, comment_id, frozen=False)
    return MessageResponse(message="Comment restored")


@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_comment(
    post_id: UUID,
    comment_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    comments: CommentService = Depends(get_comment_service),
) -> Response:
    """Delete a comment and its replies. Author or admin roles."""
    await comments.delete(session.user, post_id, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

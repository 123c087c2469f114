"""User account and social graph API endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.api.auth import get_auth_service
from socialhub.core import get_db
from socialhub.middleware import authentication, authorization
from socialhub.models.post import Post
from socialhub.models.user import Role, User
from socialhub.schemas.auth import ChangePasswordRequest, LogoutRequest, MessageResponse
from socialhub.schemas.user import (
    ChangeRoleRequest,
    FreezeRequest,
    FriendRequestResponse,
    UserResponse,
)
from socialhub.services.auth import AuthService, LogoutFlag
from socialhub.services.session import ResolvedSession
from socialhub.services.user import UserService

router = APIRouter(prefix="/users", tags=["users"])

admin_only = authorization(Role.ADMIN, Role.SUPER_ADMIN)


def get_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    """Dependency to get user service."""
    return UserService(db)


class DashboardResponse(BaseModel):
    users: int
    frozen_users: int
    posts: int


@router.get("/profile", response_model=UserResponse)
async def profile(session: ResolvedSession = Depends(authentication())) -> UserResponse:
    """Get the signed-in user's profile."""
    return UserResponse.model_validate(session.user)


@router.get("/dashboard", response_model=DashboardResponse)
async def dashboard(
    _: ResolvedSession = Depends(admin_only),
    db: AsyncSession = Depends(get_db),
) -> DashboardResponse:
    """Account and content totals for admin roles."""
    users = await db.scalar(select(func.count(User.id)))
    frozen = await db.scalar(select(func.count(User.id)).where(User.frozen_at.is_not(None)))
    posts = await db.scalar(select(func.count(Post.id)))
    return DashboardResponse(users=users or 0, frozen_users=frozen or 0, posts=posts or 0)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    request: LogoutRequest | None = None,
    session: ResolvedSession = Depends(authentication()),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Logout this session (``flag=only``) or every session (``flag=all``)."""
    flag = request.flag if request else LogoutFlag.ONLY
    await auth_service.logout(session, flag)
    return MessageResponse(message="Logged out successfully")


@router.patch("/change-password", response_model=MessageResponse)
async def change_password(
    request: ChangePasswordRequest,
    session: ResolvedSession = Depends(authentication()),
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Change password. Every token issued before the change stops working."""
    await auth_service.change_password(
        session.user, request.current_password, request.new_password
    )
    return MessageResponse(message="Password changed successfully")


@router.delete("/freeze", response_model=MessageResponse)
async def freeze_self(
    request: FreezeRequest | None = None,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.freeze(session.user, reason=request.reason if request else None)
    return MessageResponse(message="Account frozen")


@router.delete("/{user_id}/freeze", response_model=MessageResponse)
async def freeze_user(
    user_id: UUID,
    request: FreezeRequest | None = None,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Freeze an account. Freezing anyone but yourself needs an admin role."""
    await user_service.freeze(session.user, user_id, reason=request.reason if request else None)
    return MessageResponse(message="Account frozen")


@router.patch("/{user_id}/unfreeze", response_model=MessageResponse)
async def unfreeze_user(
    user_id: UUID,
    session: ResolvedSession = Depends(authentication(allow_frozen=True)),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    """Restore a frozen account. Accepts sessions of frozen accounts."""
    await user_service.unfreeze(session.user, user_id)
    return MessageResponse(message="Account restored")


@router.patch("/{user_id}/change-role", response_model=MessageResponse)
async def change_role(
    user_id: UUID,
    request: ChangeRoleRequest,
    session: ResolvedSession = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.change_role(session.user, user_id, request.role)
    return MessageResponse(message="Role updated")


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: UUID,
    session: ResolvedSession = Depends(admin_only),
    user_service: UserService = Depends(get_user_service),
) -> None:
    """Permanently delete a frozen account."""
    await user_service.delete_account(session.user, user_id)


# --- Friends & blocks ---


@router.post(
    "/{user_id}/send-friend-request",
    response_model=FriendRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_friend_request(
    user_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> FriendRequestResponse:
    request = await user_service.send_friend_request(session.user, user_id)
    return FriendRequestResponse.model_validate(request)


@router.patch("/{request_id}/accept-friend-request", response_model=MessageResponse)
async def accept_friend_request(
    request_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.accept_friend_request(session.user, request_id)
    return MessageResponse(message="Friend request accepted")


@router.delete("/{request_id}/reject-friend-request", response_model=MessageResponse)
async def reject_friend_request(
    request_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.reject_friend_request(session.user, request_id)
    return MessageResponse(message="Friend request rejected")


@router.delete("/{friend_id}/remove-friend", response_model=MessageResponse)
async def remove_friend(
    friend_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.remove_friend(session.user, friend_id)
    return MessageResponse(message="Friend removed")


@router.patch("/{user_id}/block", response_model=MessageResponse)
async def block_user(
    user_id: UUID,
    session: ResolvedSession = Depends(authentication()),
    user_service: UserService = Depends(get_user_service),
) -> MessageResponse:
    await user_service.block(session.user, user_id)
    return MessageResponse(message="User blocked")

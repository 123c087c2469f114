# SocialHub Pydantic Schemas
from socialhub.schemas.auth import (
    ChangePasswordRequest,
    ConfirmEmailRequest,
    LoginRequest,
    LogoutRequest,
    MessageResponse,
    ResetCodeRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
)
from socialhub.schemas.chat import (
    ChatMessageResponse,
    ChatResponse,
    SendMessageFrame,
    SendMessageRequest,
)
from socialhub.schemas.post import (
    CommentCreate,
    CommentResponse,
    CommentUpdate,
    PostCreate,
    PostListResponse,
    PostResponse,
    PostUpdate,
)
from socialhub.schemas.user import (
    ChangeRoleRequest,
    FreezeRequest,
    FriendRequestResponse,
    UserResponse,
)

__all__ = [
    "ChangePasswordRequest",
    "ChangeRoleRequest",
    "ChatMessageResponse",
    "ChatResponse",
    "CommentCreate",
    "CommentResponse",
    "CommentUpdate",
    "ConfirmEmailRequest",
    "FreezeRequest",
    "FriendRequestResponse",
    "LoginRequest",
    "LogoutRequest",
    "MessageResponse",
    "PostCreate",
    "PostListResponse",
    "PostResponse",
    "PostUpdate",
    "ResetCodeRequest",
    "ResetPasswordRequest",
    "SendMessageFrame",
    "SendMessageRequest",
    "SignupRequest",
    "TokenResponse",
    "UserResponse",
]

# SocialHub Models
from socialhub.models.base import BaseModel
from socialhub.models.chat import Chat, ChatMessage
from socialhub.models.comment import Comment
from socialhub.models.friend_request import FriendRequest
from socialhub.models.post import AllowComment, Availability, Post
from socialhub.models.revoked_token import RevokedToken
from socialhub.models.user import Provider, Role, User

__all__ = [
    "AllowComment",
    "Availability",
    "BaseModel",
    "Chat",
    "ChatMessage",
    "Comment",
    "FriendRequest",
    "Post",
    "Provider",
    "RevokedToken",
    "Role",
    "User",
]

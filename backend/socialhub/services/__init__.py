# SocialHub Services
from socialhub.services.auth import AuthService, LogoutFlag
from socialhub.services.chat import ChatService
from socialhub.services.comment import CommentService
from socialhub.services.connections import ConnectionRegistry
from socialhub.services.identity import SqlIdentityStore
from socialhub.services.post import PostService
from socialhub.services.revocation import SqlRevocationStore
from socialhub.services.session import ResolvedSession, SessionResolver
from socialhub.services.user import UserService

__all__ = [
    "AuthService",
    "ChatService",
    "CommentService",
    "ConnectionRegistry",
    "LogoutFlag",
    "PostService",
    "ResolvedSession",
    "SessionResolver",
    "SqlIdentityStore",
    "SqlRevocationStore",
    "UserService",
]

"""Middleware module for SocialHub backend."""

from socialhub.middleware.authentication import (
    authentication,
    authorization,
    get_session_resolver,
    optional_authentication,
)

__all__ = [
    "authentication",
    "authorization",
    "get_session_resolver",
    "optional_authentication",
]

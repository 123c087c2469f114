"""Authentication and authorization guards.

Route handlers declare what they need with ``Depends``:

    session = Depends(authentication())
    session = Depends(authorization(Role.SUPER_ADMIN))

Both resolve the Authorization header through ``SessionResolver`` and leave
the identity on ``request.state.user`` and the verified payload on
``request.state.decoded`` for downstream handlers.
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.core import get_db
from socialhub.core.request_utils import get_authorization
from socialhub.models.user import Role
from socialhub.services.errors import ForbiddenError
from socialhub.services.identity import SqlIdentityStore
from socialhub.services.revocation import SqlRevocationStore
from socialhub.services.session import ResolvedSession, SessionResolver
from socialhub.services.tokens import TokenKind

SessionGuard = Callable[..., Awaitable[ResolvedSession]]


def get_session_resolver(db: AsyncSession = Depends(get_db)) -> SessionResolver:
    """Dependency to get a resolver bound to the request's database session."""
    return SessionResolver(SqlIdentityStore(db), SqlRevocationStore(db))


def _attach(request: Request, session: ResolvedSession) -> ResolvedSession:
    request.state.user = session.user
    request.state.decoded = session.payload
    return session


def authentication(kind: TokenKind = TokenKind.ACCESS, *, allow_frozen: bool = False) -> SessionGuard:
    """Require a valid credential of ``kind`` in the Authorization header."""

    async def guard(
        request: Request,
        resolver: SessionResolver = Depends(get_session_resolver),
    ) -> ResolvedSession:
        session = await resolver.resolve(
            get_authorization(request), kind, allow_frozen=allow_frozen
        )
        return _attach(request, session)

    return guard


def authorization(
    *roles: Role,
    kind: TokenKind = TokenKind.ACCESS,
    allow_frozen: bool = False,
) -> SessionGuard:
    """Require authentication and one of ``roles``.

    Roles are matched exactly; admin does not imply user. A valid identity
    with the wrong role gets ``ForbiddenError``, never an authentication error.
    """
    allowed = frozenset(roles)

    async def guard(
        request: Request,
        resolver: SessionResolver = Depends(get_session_resolver),
    ) -> ResolvedSession:
        session = await resolver.resolve(
            get_authorization(request), kind, allow_frozen=allow_frozen
        )
        if session.user.role not in allowed:
            raise ForbiddenError("Not authorized account")
        return _attach(request, session)

    return guard


def optional_authentication() -> Callable[..., Awaitable[ResolvedSession | None]]:
    """Resolve the credential when one is presented; anonymous otherwise.

    A presented but invalid credential still fails; it is not silently
    downgraded to anonymous.
    """

    async def guard(
        request: Request,
        resolver: SessionResolver = Depends(get_session_resolver),
    ) -> ResolvedSession | None:
        header = get_authorization(request)
        if not header:
            request.state.user = None
            return None
        return _attach(request, await resolver.resolve(header))

    return guard

"""Service-layer exceptions mapped to HTTP responses.

Each class carries the HTTP status and a stable ``error_code``; the API layer
renders them through ``socialhub.api.error_handling``.
"""

from typing import Any


class ServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = 400
    error_code: str = "bad_request"

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        detail: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.detail = detail or {}


class BadRequestError(ServiceError):
    """Request is well-formed but cannot be applied (400)."""

    status_code = 400
    error_code = "bad_request"


class NotFoundError(ServiceError):
    """Requested resource not found (404)."""

    status_code = 404
    error_code = "not_found"


class ConflictError(ServiceError):
    """Resource conflict, e.g. duplicate creation (409)."""

    status_code = 409
    error_code = "conflict"


class ForbiddenError(ServiceError):
    """Identity is valid but not allowed to perform the action (403)."""

    status_code = 403
    error_code = "forbidden"


class AuthError(ServiceError):
    """Base authentication error: the credential itself was not accepted."""

    status_code = 400
    error_code = "authentication_failed"


class MalformedCredentialError(AuthError):
    """Authorization header missing or not "<label> <token>"."""

    error_code = "malformed_credential"


class InvalidCredentialError(AuthError):
    """Bad signature, expired token, or undecodable token."""

    error_code = "invalid_credential"


class InvalidPayloadError(InvalidCredentialError):
    """Token verified but lacks the claims a session needs."""

    error_code = "invalid_payload"


class IdentityNotFoundError(AuthError):
    """Token subject no longer exists.

    Reported as a credential problem (400) so a deleted account cannot be
    told apart from a bad token.
    """

    error_code = "identity_not_found"


class RevokedCredentialError(AuthError):
    """Token family was explicitly revoked by JTI."""

    status_code = 403
    error_code = "revoked_credential"


class StaleCredentialError(AuthError):
    """Token was issued before the account's credentials watermark."""

    status_code = 403
    error_code = "stale_credential"


class AccountFrozenError(AuthError):
    """Account is frozen."""

    status_code = 403
    error_code = "account_frozen"


class InvalidLoginError(AuthError):
    """Wrong email/password pair (or account that cannot log in with one)."""

    status_code = 401
    error_code = "invalid_login"


class RateLimitedError(ServiceError):
    """Too many attempts from one client (429)."""

    status_code = 429
    error_code = "rate_limited"

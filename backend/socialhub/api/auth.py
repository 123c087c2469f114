"""Authentication API endpoints."""

import logging
import time
from collections import defaultdict

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.core import get_db, settings
from socialhub.core.logging import log_context
from socialhub.core.request_utils import get_client_ip
from socialhub.middleware import authentication
from socialhub.schemas.auth import (
    ConfirmEmailRequest,
    LoginRequest,
    MessageResponse,
    ResetCodeRequest,
    ResetPasswordRequest,
    SignupRequest,
    TokenResponse,
)
from socialhub.services.auth import AuthService
from socialhub.services.errors import InvalidLoginError, RateLimitedError
from socialhub.services.mailer import Mailer, get_mailer
from socialhub.services.session import ResolvedSession
from socialhub.services.tokens import CredentialPair, TokenKind

logger = logging.getLogger(__name__)

# Rate limiting for failed login attempts
_login_attempts: dict[str, list[float]] = defaultdict(list)


def _check_login_rate_limit(client_ip: str) -> None:
    """Check if a client IP has exceeded the login attempt rate limit."""
    now = time.monotonic()
    window = settings.login_rate_limit_window_seconds
    attempts = [t for t in _login_attempts[client_ip] if now - t < window]
    _login_attempts[client_ip] = attempts
    if len(attempts) >= settings.login_rate_limit_attempts:
        logger.warning("Login rate limit exceeded", extra=log_context(client_ip=client_ip))
        retry_after = int(window - (now - attempts[0])) + 1
        raise RateLimitedError(
            "Too many login attempts. Please try again later.",
            detail={"retry_after": retry_after},
        )


def _record_login_attempt(client_ip: str) -> None:
    """Record a failed login attempt for rate limiting."""
    _login_attempts[client_ip].append(time.monotonic())


def reset_login_attempts() -> None:
    _login_attempts.clear()


def _token_response(credentials: CredentialPair) -> TokenResponse:
    return TokenResponse(
        access_token=credentials.access_token,
        refresh_token=credentials.refresh_token,
        token_type=credentials.token_type,
        expires_in=credentials.expires_in,
    )


router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(db, mailer)


@router.post("/signup", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    """Create an account and send the email confirmation code.

    Returns 409 Conflict if the email is already registered.
    """
    await auth_service.signup(
        first_name=request.first_name,
        last_name=request.last_name,
        email=request.email,
        password=request.password,
    )
    return MessageResponse(message="Account created, check your inbox to confirm your email")


@router.patch("/confirm-email", response_model=MessageResponse)
async def confirm_email(
    request: ConfirmEmailRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.confirm_email(request.email, request.otp)
    return MessageResponse(message="Email confirmed")


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Authenticate and get a JWT pair.

    The response's ``token_type`` is the label to send in the Authorization
    header. Rate limited per client IP on failed attempts.
    """
    client_ip = get_client_ip(http_request)
    _check_login_rate_limit(client_ip)

    try:
        user, credentials = await auth_service.login(request.email, request.password)
    except InvalidLoginError:
        _record_login_attempt(client_ip)
        raise

    logger.info(f"User logged in: {user.id}")
    return _token_response(credentials)


@router.post("/refresh-token", response_model=TokenResponse)
async def refresh_token(
    session: ResolvedSession = Depends(authentication(TokenKind.REFRESH)),
    auth_service: AuthService = Depends(get_auth_service),
) -> TokenResponse:
    """Exchange a refresh token (in the Authorization header) for a new pair.

    The presented pair is revoked, so each refresh token works once.
    """
    return _token_response(await auth_service.refresh(session))


@router.patch("/reset-password-code", response_model=MessageResponse)
async def reset_password_code(
    request: ResetCodeRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.request_password_reset(request.email)
    return MessageResponse(message="If the account exists, a reset code has been sent")


@router.patch("/reset-password", response_model=MessageResponse)
async def reset_password(
    request: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> MessageResponse:
    await auth_service.reset_password(request.email, request.otp, request.password)
    return MessageResponse(message="Password has been reset, please log in again")

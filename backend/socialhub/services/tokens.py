"""JWT issuance and verification with role-tiered signing secrets.

Standard accounts and admin-tier accounts sign with different secret pairs,
so a leaked standard secret cannot mint admin tokens (and vice versa). The
tier also decides the label clients send in the Authorization header:

    Authorization: Bearer <token>   standard tier
    Authorization: Admin <token>    elevated tier

Both tokens of a pair share one ``jti``; revoking it ends the whole session.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Any

import jwt
from jwt.exceptions import ExpiredSignatureError, PyJWTError

from socialhub.core.config import settings
from socialhub.models.user import Role, User
from socialhub.services.errors import InvalidCredentialError, MalformedCredentialError


class TokenKind(StrEnum):
    ACCESS = "access"
    REFRESH = "refresh"


class TokenTier(StrEnum):
    STANDARD = "standard"
    ELEVATED = "elevated"


@dataclass(frozen=True)
class SecretPair:
    access: str
    refresh: str

    def for_kind(self, kind: TokenKind) -> str:
        return self.refresh if kind is TokenKind.REFRESH else self.access


# Every role must appear here; a new role is never mapped implicitly.
ROLE_TIERS: dict[Role, TokenTier] = {
    Role.USER: TokenTier.STANDARD,
    Role.ADMIN: TokenTier.ELEVATED,
    Role.SUPER_ADMIN: TokenTier.ELEVATED,
}

TIER_LABELS: dict[TokenTier, str] = {
    TokenTier.STANDARD: "Bearer",
    TokenTier.ELEVATED: "Admin",
}

LABEL_TIERS: dict[str, TokenTier] = {label: tier for tier, label in TIER_LABELS.items()}


def tier_for_role(role: str) -> TokenTier:
    return ROLE_TIERS[Role(role)]


def label_for_role(role: str) -> str:
    return TIER_LABELS[tier_for_role(role)]


def tier_for_label(label: str) -> TokenTier:
    """Resolve an Authorization header label to its tier."""
    try:
        return LABEL_TIERS[label]
    except KeyError:
        raise MalformedCredentialError(f"Unsupported token type: {label!r}") from None


def secrets_for_tier(tier: TokenTier) -> SecretPair:
    if tier is TokenTier.ELEVATED:
        return SecretPair(
            access=settings.jwt_access_secret_admin,
            refresh=settings.jwt_refresh_secret_admin,
        )
    if tier is TokenTier.STANDARD:
        return SecretPair(
            access=settings.jwt_access_secret_user,
            refresh=settings.jwt_refresh_secret_user,
        )
    raise ValueError(f"No secret pair configured for tier {tier!r}")


def access_token_lifetime() -> timedelta:
    return timedelta(minutes=settings.access_token_expire_minutes)


def refresh_token_lifetime() -> timedelta:
    return timedelta(days=settings.refresh_token_expire_days)


@dataclass(frozen=True)
class CredentialPair:
    """An access/refresh token pair sharing one jti."""

    access_token: str
    refresh_token: str
    token_type: str
    jti: str
    expires_in: int


@dataclass(frozen=True)
class TokenPayload:
    """Decoded claims of a verified token."""

    user_id: str
    role: str | None
    jti: str
    issued_at: datetime
    expires_at: datetime | None
    kind: TokenKind
    raw: dict[str, Any]

    @property
    def revocation_expires_at(self) -> datetime:
        """Latest instant any token of this pair can still verify."""
        return self.issued_at + refresh_token_lifetime()


def encode_token(
    payload: dict[str, Any],
    secret: str,
    lifetime: timedelta,
    issued_at: datetime,
) -> str:
    claims = {
        **payload,
        # Sub-second precision so tokens issued right after a watermark
        # stamp within the same second still compare as newer.
        "iat": issued_at.timestamp(),
        "exp": issued_at + lifetime,
    }
    return str(jwt.encode(claims, secret, algorithm=settings.jwt_algorithm))


def issue_credential_pair(user: User, now: datetime | None = None) -> CredentialPair:
    """Create a new access/refresh pair for ``user``.

    Pure function of the identity, the clock and the configured secrets.
    """
    issued_at = now or datetime.now(UTC)
    tier = tier_for_role(user.role)
    secret_pair = secrets_for_tier(tier)
    jti = secrets.token_hex(16)
    payload = {"id": str(user.id), "role": str(user.role), "jti": jti}

    access_lifetime = access_token_lifetime()
    return CredentialPair(
        access_token=encode_token(payload, secret_pair.access, access_lifetime, issued_at),
        refresh_token=encode_token(
            payload, secret_pair.refresh, refresh_token_lifetime(), issued_at
        ),
        token_type=TIER_LABELS[tier],
        jti=jti,
        expires_in=int(access_lifetime.total_seconds()),
    )


def decode_token(token: str, tier: TokenTier, kind: TokenKind) -> dict[str, Any]:
    """Verify signature and expiry against the secret for ``tier``/``kind``."""
    secret = secrets_for_tier(tier).for_kind(kind)
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp"]},
        )
    except ExpiredSignatureError as e:
        raise InvalidCredentialError("Token has expired") from e
    except PyJWTError as e:
        raise InvalidCredentialError(f"Invalid token: {e}") from e

"""Session resolution - turns an Authorization header into a live identity.

Checks run in a fixed order and every failure is final:

1. header splits into "<label> <token>"            MalformedCredentialError
2. label selects the secret tier                    MalformedCredentialError
3. signature / expiry against tier + token kind     InvalidCredentialError
4. payload carries id, iat and jti                  InvalidPayloadError
5. jti is not revoked                               RevokedCredentialError
6. subject still exists                             IdentityNotFoundError
7. iat is not older than change_credentials_time    StaleCredentialError

A frozen account is then refused unless the caller allows it.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from socialhub.models.user import User
from socialhub.services.errors import (
    AccountFrozenError,
    IdentityNotFoundError,
    InvalidPayloadError,
    MalformedCredentialError,
    RevokedCredentialError,
    StaleCredentialError,
)
from socialhub.services.identity import IdentityStore
from socialhub.services.revocation import RevocationStore
from socialhub.services.tokens import TokenKind, TokenPayload, decode_token, tier_for_label


@dataclass(frozen=True)
class ResolvedSession:
    user: User
    payload: TokenPayload


def split_authorization(authorization: str | None) -> tuple[str, str]:
    """Split "<label> <token>" on its single space."""
    if not authorization:
        raise MalformedCredentialError("Authorization header is required")
    parts = authorization.split(" ")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        raise MalformedCredentialError("Invalid token format")
    return parts[0], parts[1]


def parse_payload(claims: dict, kind: TokenKind) -> TokenPayload:
    user_id = claims.get("id")
    issued_at = claims.get("iat")
    jti = claims.get("jti")
    if not user_id or issued_at is None or not jti:
        raise InvalidPayloadError("Invalid token payload")
    try:
        UUID(str(user_id))
        issued = datetime.fromtimestamp(float(issued_at), tz=UTC)
    except (TypeError, ValueError, OverflowError) as e:
        raise InvalidPayloadError("Invalid token payload") from e

    exp = claims.get("exp")
    return TokenPayload(
        user_id=str(user_id),
        role=claims.get("role"),
        jti=str(jti),
        issued_at=issued,
        expires_at=datetime.fromtimestamp(exp, tz=UTC) if exp is not None else None,
        kind=kind,
        raw=claims,
    )


class SessionResolver:
    """Validates presented tokens against the identity and revocation stores."""

    def __init__(self, identities: IdentityStore, revocations: RevocationStore):
        self.identities = identities
        self.revocations = revocations

    async def resolve(
        self,
        authorization: str | None,
        kind: TokenKind = TokenKind.ACCESS,
        *,
        allow_frozen: bool = False,
    ) -> ResolvedSession:
        label, token = split_authorization(authorization)
        tier = tier_for_label(label)
        claims = decode_token(token, tier, kind)
        payload = parse_payload(claims, kind)

        if await self.revocations.exists(payload.jti):
            raise RevokedCredentialError("Token has been revoked")

        user = await self.identities.find_by_id(UUID(payload.user_id), include_frozen=True)
        if user is None:
            raise IdentityNotFoundError("User not found")

        watermark = user.change_credentials_time
        if watermark is not None and watermark > payload.issued_at:
            raise StaleCredentialError("Token was issued before the last credentials change")

        if user.is_frozen and not allow_frozen:
            raise AccountFrozenError("Account is frozen")

        return ResolvedSession(user=user, payload=payload)

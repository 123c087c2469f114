"""Tests for the session resolver: header -> verified token -> live identity."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest

from socialhub.core import settings
from socialhub.models.user import Role, User
from socialhub.services.errors import (
    AccountFrozenError,
    AuthError,
    IdentityNotFoundError,
    InvalidCredentialError,
    InvalidPayloadError,
    MalformedCredentialError,
    RevokedCredentialError,
    StaleCredentialError,
)
from socialhub.services.session import SessionResolver, split_authorization
from socialhub.services.tokens import TokenKind, encode_token, issue_credential_pair


class FakeIdentityStore:
    def __init__(self, *users: User):
        self.users = {user.id: user for user in users}
        self.lookups = 0

    async def find_by_id(self, user_id, *, include_frozen=False):
        self.lookups += 1
        user = self.users.get(user_id)
        if user is not None and user.frozen_at is not None and not include_frozen:
            return None
        return user

    async def update_by_id(self, user_id, **patch):
        user = self.users.get(user_id)
        if user is None:
            return False
        for key, value in patch.items():
            setattr(user, key, value)
        return True


class FakeRevocationStore:
    def __init__(self):
        self.revoked = {}

    async def exists(self, jti):
        return jti in self.revoked

    async def insert(self, jti, user_id, expires_at):
        self.revoked.setdefault(jti, expires_at)

    async def purge_expired(self):
        return 0


def make_user(role: str = Role.USER, **kwargs) -> User:
    return User(
        id=uuid.uuid4(),
        first_name="Ada",
        last_name="Lovelace",
        email=f"{uuid.uuid4().hex}@socialhub.app",
        password_hash="x",
        role=role,
        **kwargs,
    )


def header(pair, kind: TokenKind = TokenKind.ACCESS) -> str:
    token = pair.refresh_token if kind is TokenKind.REFRESH else pair.access_token
    return f"{pair.token_type} {token}"


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def revocations():
    return FakeRevocationStore()


@pytest.fixture
def identities(user):
    return FakeIdentityStore(user)


@pytest.fixture
def resolver(identities, revocations):
    return SessionResolver(identities, revocations)


# --- Header shape ---


@pytest.mark.parametrize("value", [None, "", "Bearer", "Bearer ", " token", "Bearer a b"])
def test_split_authorization_rejects_bad_shapes(value):
    with pytest.raises(MalformedCredentialError):
        split_authorization(value)


def test_split_authorization():
    assert split_authorization("Admin abc.def") == ("Admin", "abc.def")


@pytest.mark.asyncio
async def test_unknown_label_is_malformed(resolver, user):
    pair = issue_credential_pair(user)
    with pytest.raises(MalformedCredentialError):
        await resolver.resolve(f"Token {pair.access_token}")


# --- Successful resolution ---


@pytest.mark.asyncio
async def test_resolves_access_token(resolver, user):
    pair = issue_credential_pair(user)
    session = await resolver.resolve(header(pair))
    assert session.user is user
    assert session.payload.jti == pair.jti
    assert session.payload.kind is TokenKind.ACCESS
    assert session.payload.user_id == str(user.id)


@pytest.mark.asyncio
async def test_resolves_refresh_token_only_as_refresh(resolver, user):
    pair = issue_credential_pair(user)
    session = await resolver.resolve(header(pair, TokenKind.REFRESH), TokenKind.REFRESH)
    assert session.user is user

    with pytest.raises(InvalidCredentialError):
        await resolver.resolve(header(pair, TokenKind.REFRESH))
    with pytest.raises(InvalidCredentialError):
        await resolver.resolve(header(pair), TokenKind.REFRESH)


@pytest.mark.asyncio
async def test_admin_token_needs_admin_label():
    admin = make_user(Role.ADMIN)
    resolver = SessionResolver(FakeIdentityStore(admin), FakeRevocationStore())
    pair = issue_credential_pair(admin)
    assert pair.token_type == "Admin"

    session = await resolver.resolve(header(pair))
    assert session.user is admin

    with pytest.raises(InvalidCredentialError):
        await resolver.resolve(f"Bearer {pair.access_token}")


@pytest.mark.asyncio
async def test_user_token_under_admin_label_is_invalid(resolver, user):
    pair = issue_credential_pair(user)
    with pytest.raises(InvalidCredentialError):
        await resolver.resolve(f"Admin {pair.access_token}")


# --- Payload ---


def _token(claims: dict, issued_at: datetime | None = None) -> str:
    return "Bearer " + encode_token(
        claims,
        settings.jwt_access_secret_user,
        timedelta(minutes=5),
        issued_at or datetime.now(UTC),
    )


@pytest.mark.asyncio
async def test_payload_without_jti_is_invalid(resolver, user):
    with pytest.raises(InvalidPayloadError):
        await resolver.resolve(_token({"id": str(user.id), "role": "user"}))


@pytest.mark.asyncio
async def test_payload_without_id_is_invalid(resolver):
    with pytest.raises(InvalidPayloadError):
        await resolver.resolve(_token({"jti": "abc", "role": "user"}))


@pytest.mark.asyncio
async def test_payload_with_non_uuid_id_is_invalid(resolver):
    with pytest.raises(InvalidPayloadError):
        await resolver.resolve(_token({"id": "42", "jti": "abc"}))


# --- Revocation, identity and watermark ---


@pytest.mark.asyncio
async def test_revoked_jti_is_rejected_before_identity_lookup(resolver, identities, revocations, user):
    pair = issue_credential_pair(user)
    await revocations.insert(pair.jti, user.id, datetime.now(UTC) + timedelta(days=14))

    with pytest.raises(RevokedCredentialError):
        await resolver.resolve(header(pair))
    with pytest.raises(RevokedCredentialError):
        await resolver.resolve(header(pair, TokenKind.REFRESH), TokenKind.REFRESH)
    assert identities.lookups == 0


@pytest.mark.asyncio
async def test_unknown_identity(revocations):
    ghost = make_user()
    resolver = SessionResolver(FakeIdentityStore(), revocations)
    with pytest.raises(IdentityNotFoundError):
        await resolver.resolve(header(issue_credential_pair(ghost)))


@pytest.mark.asyncio
async def test_token_older_than_watermark_is_stale(resolver, user):
    pair = issue_credential_pair(user)
    user.change_credentials_time = datetime.now(UTC) + timedelta(milliseconds=5)

    with pytest.raises(StaleCredentialError):
        await resolver.resolve(header(pair))


@pytest.mark.asyncio
async def test_watermark_makes_both_tokens_of_pair_stale(resolver, user):
    pair = issue_credential_pair(user, now=datetime.now(UTC) - timedelta(seconds=1))
    assert (await resolver.resolve(header(pair, TokenKind.REFRESH), TokenKind.REFRESH)).user is user

    user.change_credentials_time = datetime.now(UTC)

    with pytest.raises(StaleCredentialError):
        await resolver.resolve(header(pair))
    with pytest.raises(StaleCredentialError):
        await resolver.resolve(header(pair, TokenKind.REFRESH), TokenKind.REFRESH)


@pytest.mark.asyncio
async def test_token_issued_after_watermark_is_accepted(resolver, user):
    user.change_credentials_time = datetime.now(UTC) - timedelta(seconds=1)
    session = await resolver.resolve(header(issue_credential_pair(user)))
    assert session.user is user


@pytest.mark.asyncio
async def test_same_second_watermark_compares_sub_second(resolver, user):
    """Test tokens issued within the same second as a watermark stamp."""
    watermark = (datetime.now(UTC) - timedelta(seconds=2)).replace(microsecond=100000)
    user.change_credentials_time = watermark

    before = issue_credential_pair(user, now=watermark - timedelta(milliseconds=50))
    after = issue_credential_pair(user, now=watermark + timedelta(milliseconds=300))

    with pytest.raises(StaleCredentialError):
        await resolver.resolve(header(before))
    session = await resolver.resolve(header(after))
    assert session.payload.jti == after.jti


@pytest.mark.asyncio
async def test_frozen_identity_rejected_unless_allowed(resolver, user):
    user.frozen_at = datetime.now(UTC)
    pair = issue_credential_pair(user)

    with pytest.raises(AccountFrozenError):
        await resolver.resolve(header(pair))

    session = await resolver.resolve(header(pair), allow_frozen=True)
    assert session.user is user


@pytest.mark.asyncio
async def test_all_failures_are_auth_errors(resolver):
    with pytest.raises(AuthError):
        await resolver.resolve("Bearer garbage")

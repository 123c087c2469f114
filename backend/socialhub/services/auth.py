"""Authentication service: sign-up, login, token rotation and logout."""

import logging
from datetime import UTC, datetime
from enum import StrEnum

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.models.user import Provider, User
from socialhub.services.errors import (
    AccountFrozenError,
    BadRequestError,
    ConflictError,
    InvalidLoginError,
)
from socialhub.services.hashing import generate_otp, hash_secret, verify_secret
from socialhub.services.identity import SqlIdentityStore
from socialhub.services.mailer import LogMailer, Mailer, OtpMessage
from socialhub.services.revocation import SqlRevocationStore
from socialhub.services.session import ResolvedSession
from socialhub.services.tokens import CredentialPair, issue_credential_pair

logger = logging.getLogger(__name__)

# Verified against when the account does not exist, so unknown emails cost
# the same argon2 work as wrong passwords.
_DUMMY_HASH: str | None = None


class LogoutFlag(StrEnum):
    ONLY = "only"
    ALL = "all"


def normalize_email(email: str) -> str:
    return email.strip().lower()


async def _dummy_hash() -> str:
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = await hash_secret("dummy-password")
    return _DUMMY_HASH


class AuthService:
    """Service for account authentication operations."""

    def __init__(self, session: AsyncSession, mailer: Mailer | None = None):
        self.session = session
        self.mailer = mailer or LogMailer()
        self.identities = SqlIdentityStore(session)
        self.revocations = SqlRevocationStore(session)

    async def email_exists(self, email: str) -> bool:
        result = await self.session.execute(
            select(User.id).where(User.email == normalize_email(email))
        )
        return result.scalar_one_or_none() is not None

    async def signup(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
    ) -> User:
        """Create a system-provider account and email it a confirmation OTP."""
        email = normalize_email(email)
        if await self.email_exists(email):
            raise ConflictError("Email already in use")

        otp = generate_otp()
        user = User(
            first_name=first_name.strip(),
            last_name=last_name.strip(),
            email=email,
            password_hash=await hash_secret(password),
            provider=Provider.SYSTEM,
            confirm_email_otp=await hash_secret(otp),
        )
        self.session.add(user)
        await self.session.commit()

        await self.mailer.send_otp(
            OtpMessage(to=email, subject="Confirm your email", first_name=user.first_name, otp=otp)
        )
        logger.info(f"User signed up: {user.id}")
        return user

    async def confirm_email(self, email: str, otp: str) -> None:
        user = await self.identities.find_by_email(email)
        if user is None or user.confirmed_at is not None or not user.confirm_email_otp:
            raise BadRequestError("Invalid account or email already confirmed")
        if not await verify_secret(otp, user.confirm_email_otp):
            raise BadRequestError("Invalid confirmation code")

        await self.identities.update_by_id(
            user.id, confirmed_at=datetime.now(UTC), confirm_email_otp=None
        )
        logger.info(f"Email confirmed for user {user.id}")

    async def login(self, email: str, password: str) -> tuple[User, CredentialPair]:
        """Authenticate with email and password and issue a token pair.

        Unknown email and wrong password raise the same error to prevent
        account enumeration.
        """
        user = await self.identities.find_by_email(email, include_frozen=True)

        if user is None or user.provider != Provider.SYSTEM:
            await verify_secret(password, await _dummy_hash())
            raise InvalidLoginError("Invalid email or password")

        if not await verify_secret(password, user.password_hash):
            raise InvalidLoginError("Invalid email or password")

        if user.confirmed_at is None:
            raise BadRequestError("Please confirm your email first")

        if user.is_frozen:
            raise AccountFrozenError("Account is frozen")

        await self.identities.update_by_id(user.id, last_login_at=datetime.now(UTC))
        return user, issue_credential_pair(user)

    async def refresh(self, resolved: ResolvedSession) -> CredentialPair:
        """Rotate a token pair: revoke the presented family, issue a new one."""
        payload = resolved.payload
        await self.revocations.insert(
            payload.jti, resolved.user.id, payload.revocation_expires_at
        )
        logger.debug(f"Rotated token family {payload.jti} for user {resolved.user.id}")
        return issue_credential_pair(resolved.user)

    async def logout(self, resolved: ResolvedSession, flag: LogoutFlag = LogoutFlag.ONLY) -> None:
        """End the current session, or every session of the account."""
        user = resolved.user
        if flag == LogoutFlag.ALL:
            await self.identities.update_by_id(user.id, change_credentials_time=datetime.now(UTC))
            logger.info(f"User {user.id} logged out from all devices")
            return

        payload = resolved.payload
        await self.revocations.insert(payload.jti, user.id, payload.revocation_expires_at)
        logger.info(f"User {user.id} logged out (session {payload.jti})")

    async def change_password(self, user: User, current_password: str, new_password: str) -> None:
        """Change the password and invalidate every existing token."""
        if not await verify_secret(current_password, user.password_hash):
            raise BadRequestError("Current password is incorrect")

        await self.identities.update_by_id(
            user.id,
            password_hash=await hash_secret(new_password),
            change_credentials_time=datetime.now(UTC),
        )
        logger.info(f"Password changed for user {user.id}")

    async def request_password_reset(self, email: str) -> None:
        """Email a reset OTP. Silent for unknown or ineligible accounts."""
        user = await self.identities.find_by_email(email)
        if user is None or user.provider != Provider.SYSTEM or user.confirmed_at is None:
            logger.info("Password reset requested for unknown or ineligible account")
            return

        otp = generate_otp()
        await self.identities.update_by_id(user.id, reset_password_otp=await hash_secret(otp))
        await self.mailer.send_otp(
            OtpMessage(to=user.email, subject="Reset your password", first_name=user.first_name, otp=otp)
        )

    async def reset_password(self, email: str, otp: str, new_password: str) -> None:
        user = await self.identities.find_by_email(email)
        if user is None or not user.reset_password_otp:
            raise BadRequestError("Invalid or expired reset code")
        if not await verify_secret(otp, user.reset_password_otp):
            raise BadRequestError("Invalid or expired reset code")

        await self.identities.update_by_id(
            user.id,
            password_hash=await hash_secret(new_password),
            reset_password_otp=None,
            change_credentials_time=datetime.now(UTC),
        )
        logger.info(f"Password reset for user {user.id}")

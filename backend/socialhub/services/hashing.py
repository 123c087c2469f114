"""One-way hashing for passwords and one-time passcodes (argon2id)."""

import asyncio
import secrets
from functools import lru_cache

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from socialhub.core.config import settings


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    """Argon2id hasher built from the configured cost parameters."""
    return PasswordHasher(
        time_cost=settings.password_hash_time_cost,
        memory_cost=settings.password_hash_memory_cost,
        parallelism=settings.password_hash_parallelism,
        hash_len=32,
        salt_len=16,
    )


def _verify(plain_text: str, hashed_text: str) -> bool:
    try:
        return get_password_hasher().verify(hashed_text, plain_text)
    except (VerificationError, InvalidHashError):
        return False


async def hash_secret(plain_text: str) -> str:
    """Hash a password or OTP. Runs in a worker thread to keep the loop free."""
    return await asyncio.to_thread(get_password_hasher().hash, plain_text)


async def verify_secret(plain_text: str, hashed_text: str | None) -> bool:
    """Verify a plain secret against its stored hash.

    A missing or malformed stored hash never matches.
    """
    if not hashed_text:
        return False
    return await asyncio.to_thread(_verify, plain_text, hashed_text)


def generate_otp(length: int | None = None) -> str:
    """Random numeric one-time passcode."""
    digits = length or settings.otp_length
    return "".join(str(secrets.randbelow(10)) for _ in range(digits))

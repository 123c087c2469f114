"""Token revocation store - persistent record of revoked JTIs."""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.engine import CursorResult
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.models.revoked_token import RevokedToken

logger = logging.getLogger(__name__)


class RevocationStore(Protocol):
    async def exists(self, jti: str) -> bool: ...

    async def insert(self, jti: str, user_id: UUID, expires_at: datetime) -> None: ...

    async def purge_expired(self) -> int: ...


class SqlRevocationStore:
    """RevocationStore backed by the ``revoked_tokens`` table.

    A record past its ``expires_at`` counts as absent; every token of that
    family has expired on its own by then.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def exists(self, jti: str) -> bool:
        now = datetime.now(UTC)
        result = await self.session.execute(
            select(RevokedToken.jti).where(
                RevokedToken.jti == jti,
                RevokedToken.expires_at > now,
            )
        )
        return result.scalar_one_or_none() is not None

    async def insert(self, jti: str, user_id: UUID, expires_at: datetime) -> None:
        """Record ``jti`` as revoked. Revoking the same jti twice is a no-op."""
        if await self.session.get(RevokedToken, jti) is not None:
            return
        self.session.add(RevokedToken(jti=jti, user_id=user_id, expires_at=expires_at))
        try:
            await self.session.commit()
        except IntegrityError:
            # Concurrent revocation of the same family already won
            await self.session.rollback()
            logger.debug(f"Token family {jti} already revoked")

    async def purge_expired(self) -> int:
        """Delete records whose expiry has passed. Returns count removed."""
        now = datetime.now(UTC)
        result: CursorResult[Any] = await self.session.execute(  # type: ignore[assignment]
            delete(RevokedToken).where(RevokedToken.expires_at <= now)
        )
        await self.session.commit()
        return result.rowcount

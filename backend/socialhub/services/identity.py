"""Identity store - user lookups used by the session resolver and services."""

from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from socialhub.models.user import User


class IdentityStore(Protocol):
    async def find_by_id(self, user_id: UUID, *, include_frozen: bool = False) -> User | None: ...

    async def update_by_id(self, user_id: UUID, **patch: Any) -> bool: ...


class SqlIdentityStore:
    """IdentityStore backed by the ``users`` table.

    Frozen accounts are excluded from reads unless ``include_frozen`` is
    passed explicitly. Users are returned with their friend and block lists
    loaded, since visibility filtering needs them on every request.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _select(self, include_frozen: bool):
        stmt = select(User).options(selectinload(User.friends), selectinload(User.blocked))
        if not include_frozen:
            stmt = stmt.where(User.frozen_at.is_(None))
        return stmt

    async def find_by_id(self, user_id: UUID, *, include_frozen: bool = False) -> User | None:
        result = await self.session.execute(self._select(include_frozen).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def find_by_email(self, email: str, *, include_frozen: bool = False) -> User | None:
        result = await self.session.execute(
            self._select(include_frozen).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def find_many(self, user_ids: list[UUID], *, include_frozen: bool = False) -> list[User]:
        if not user_ids:
            return []
        result = await self.session.execute(
            self._select(include_frozen).where(User.id.in_(user_ids))
        )
        return list(result.scalars().all())

    async def update_by_id(self, user_id: UUID, **patch: Any) -> bool:
        """Apply ``patch`` to one user in a single UPDATE statement."""
        result = await self.session.execute(
            update(User).where(User.id == user_id).values(**patch)
        )
        await self.session.commit()
        return bool(result.rowcount)

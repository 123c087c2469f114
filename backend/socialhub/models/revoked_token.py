"""Revoked token families, keyed by JTI."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from socialhub.core.database import Base
from socialhub.models.base import UTCDateTime, utcnow


class RevokedToken(Base):
    """A revoked access/refresh pair identified by its shared JTI claim.

    Entries are created on single-session logout and on refresh-token
    rotation. ``expires_at`` is the latest moment any token of the pair can
    still be valid; past it the row is dead weight and gets swept.
    """

    __tablename__ = "revoked_tokens"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)

    def __repr__(self) -> str:
        return f"<RevokedToken {self.jti}>"

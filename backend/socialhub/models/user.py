"""User model - account identity, credentials watermark and relationships."""

from datetime import datetime
from enum import StrEnum
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Column,
    Enum,
    ForeignKey,
    String,
    Table,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from socialhub.core.database import Base
from socialhub.models.base import BaseModel, UTCDateTime


class Role(StrEnum):
    USER = "user"
    ADMIN = "admin"
    SUPER_ADMIN = "superAdmin"


class Provider(StrEnum):
    SYSTEM = "system"
    GOOGLE = "google"


UserRole = Enum(*[r.value for r in Role], name="user_role", create_constraint=True)
UserProvider = Enum(*[p.value for p in Provider], name="user_provider", create_constraint=True)

# Friendship is symmetric: both (a, b) and (b, a) rows are stored
user_friends = Table(
    "user_friends",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("friend_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

user_blocks = Table(
    "user_blocks",
    Base.metadata,
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("blocked_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class User(BaseModel):
    """A social network account.

    ``change_credentials_time`` is the token watermark: any token whose
    ``iat`` is earlier than it is rejected, which invalidates every session
    of the account at once.
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "provider != 'system' OR password_hash IS NOT NULL",
            name="ck_users_system_password",
        ),
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)

    # Credentials
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    provider: Mapped[str] = mapped_column(UserProvider, nullable=False, default=Provider.SYSTEM)
    role: Mapped[str] = mapped_column(UserRole, nullable=False, default=Role.USER)
    change_credentials_time: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Hashed one-time passcodes
    confirm_email_otp: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reset_password_otp: Mapped[str | None] = mapped_column(String(255), nullable=True)
    confirmed_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Freeze / restore
    frozen_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True, index=True)
    frozen_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)
    freeze_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    restored_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    restored_by: Mapped[UUID | None] = mapped_column(Uuid, nullable=True)

    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    # Collections are only available when loaded explicitly (see IdentityStore)
    friends: Mapped[list["User"]] = relationship(
        "User",
        secondary=user_friends,
        primaryjoin=lambda: User.id == user_friends.c.user_id,
        secondaryjoin=lambda: User.id == user_friends.c.friend_id,
        lazy="raise_on_sql",
    )
    blocked: Mapped[list["User"]] = relationship(
        "User",
        secondary=user_blocks,
        primaryjoin=lambda: User.id == user_blocks.c.user_id,
        secondaryjoin=lambda: User.id == user_blocks.c.blocked_id,
        lazy="raise_on_sql",
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def is_frozen(self) -> bool:
        return self.frozen_at is not None

    @property
    def friend_ids(self) -> list[UUID]:
        return [friend.id for friend in self.friends]

    @property
    def blocked_ids(self) -> list[UUID]:
        return [user.id for user in self.blocked]

    def __repr__(self) -> str:
        return f"<User {self.email}>"

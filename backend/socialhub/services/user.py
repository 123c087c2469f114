"""User service: account freezing, roles, deletion and relationships."""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.models.friend_request import FriendRequest
from socialhub.models.user import Role, User
from socialhub.services.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from socialhub.services.identity import SqlIdentityStore

logger = logging.getLogger(__name__)

ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


def is_admin(user: User) -> bool:
    return user.role in ADMIN_ROLES


class UserService:
    """Service for account management and the social graph."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.identities = SqlIdentityStore(session)

    async def _get_user(self, user_id: UUID, *, include_frozen: bool = False) -> User:
        user = await self.identities.find_by_id(user_id, include_frozen=include_frozen)
        if user is None:
            raise NotFoundError("User not found")
        return user

    # --- Freeze / restore ---

    async def freeze(self, actor: User, user_id: UUID | None = None, reason: str | None = None) -> None:
        """Freeze an account.

        Users may freeze themselves; freezing someone else needs an admin
        role and also invalidates every token the target holds.
        """
        target_id = user_id or actor.id
        forced = target_id != actor.id
        if forced and not is_admin(actor):
            raise ForbiddenError("Not authorized to freeze this account")

        target = await self._get_user(target_id)
        if forced and target.role == Role.SUPER_ADMIN and actor.role != Role.SUPER_ADMIN:
            raise ForbiddenError("Not authorized to freeze this account")

        now = datetime.now(UTC)
        patch = {
            "frozen_at": now,
            "frozen_by": actor.id,
            "freeze_reason": reason,
            "restored_at": None,
            "restored_by": None,
        }
        if forced:
            patch["change_credentials_time"] = now
        await self.identities.update_by_id(target.id, **patch)
        logger.info(f"User {target.id} frozen by {actor.id}")

    async def unfreeze(self, actor: User, user_id: UUID) -> None:
        """Restore a frozen account.

        Admins may restore anyone; a user may only restore an account they
        froze themselves.
        """
        target = await self._get_user(user_id, include_frozen=True)
        if not target.is_frozen:
            raise NotFoundError("Account is not frozen")

        self_restore = actor.id == target.id and target.frozen_by == actor.id
        if not self_restore and not is_admin(actor):
            raise ForbiddenError("Not authorized to unfreeze this account")
        if actor.is_frozen and not self_restore:
            raise ForbiddenError("Not authorized to unfreeze this account")

        await self.identities.update_by_id(
            target.id,
            frozen_at=None,
            frozen_by=None,
            freeze_reason=None,
            restored_at=datetime.now(UTC),
            restored_by=actor.id,
        )
        logger.info(f"User {target.id} restored by {actor.id}")

    async def delete_account(self, actor: User, user_id: UUID) -> None:
        """Hard-delete a frozen account. Admin roles only."""
        if not is_admin(actor):
            raise ForbiddenError("Not authorized to delete accounts")
        target = await self._get_user(user_id, include_frozen=True)
        if not target.is_frozen:
            raise BadRequestError("Only frozen accounts can be deleted")

        await self.session.execute(delete(User).where(User.id == target.id))
        await self.session.commit()
        logger.info(f"User {target.id} deleted by {actor.id}")

    # --- Roles ---

    async def change_role(self, actor: User, user_id: UUID, role: Role) -> None:
        """Change a user's role and invalidate their tokens.

        The role tier decides the token signing secrets, so outstanding
        tokens must not outlive a role change.
        """
        if actor.id == user_id:
            raise BadRequestError("Cannot change your own role")
        target = await self._get_user(user_id)
        if actor.role != Role.SUPER_ADMIN and (
            role == Role.SUPER_ADMIN or target.role == Role.SUPER_ADMIN
        ):
            raise ForbiddenError("Only a super admin can manage super admin roles")

        await self.identities.update_by_id(
            target.id, role=role, change_credentials_time=datetime.now(UTC)
        )
        logger.info(f"User {target.id} role changed to {role} by {actor.id}")

    # --- Friends & blocks ---

    async def send_friend_request(self, sender: User, receiver_id: UUID) -> FriendRequest:
        if sender.id == receiver_id:
            raise BadRequestError("Cannot send a friend request to yourself")
        receiver = await self._get_user(receiver_id)
        if receiver.id in sender.blocked_ids or sender.id in receiver.blocked_ids:
            raise ForbiddenError("Cannot send a friend request to this user")
        if receiver.id in sender.friend_ids:
            raise ConflictError("Already friends")

        existing = await self.session.execute(
            select(FriendRequest.id).where(
                or_(
                    (FriendRequest.sender_id == sender.id)
                    & (FriendRequest.receiver_id == receiver.id),
                    (FriendRequest.sender_id == receiver.id)
                    & (FriendRequest.receiver_id == sender.id),
                ),
                FriendRequest.accepted_at.is_(None),
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("A friend request is already pending")

        request = FriendRequest(sender_id=sender.id, receiver_id=receiver.id)
        self.session.add(request)
        await self.session.commit()
        return request

    async def _pending_request_for(self, receiver: User, request_id: UUID) -> FriendRequest:
        result = await self.session.execute(
            select(FriendRequest).where(
                FriendRequest.id == request_id,
                FriendRequest.receiver_id == receiver.id,
                FriendRequest.accepted_at.is_(None),
            )
        )
        request = result.scalar_one_or_none()
        if request is None:
            raise NotFoundError("Friend request not found")
        return request

    async def accept_friend_request(self, receiver: User, request_id: UUID) -> None:
        request = await self._pending_request_for(receiver, request_id)
        sender = await self._get_user(request.sender_id)

        request.accepted_at = datetime.now(UTC)
        if sender.id not in receiver.friend_ids:
            receiver.friends.append(sender)
        if receiver.id not in sender.friend_ids:
            sender.friends.append(receiver)
        await self.session.commit()
        logger.info(f"Users {sender.id} and {receiver.id} are now friends")

    async def reject_friend_request(self, receiver: User, request_id: UUID) -> None:
        request = await self._pending_request_for(receiver, request_id)
        await self.session.delete(request)
        await self.session.commit()

    async def remove_friend(self, user: User, friend_id: UUID) -> None:
        if friend_id not in user.friend_ids:
            raise NotFoundError("Friend not found")
        friend = await self._get_user(friend_id, include_frozen=True)
        self._unfriend(user, friend)
        await self._delete_requests_between(user.id, friend.id)
        await self.session.commit()

    async def block(self, user: User, blocked_id: UUID) -> None:
        """Block a user; this also ends any friendship between the two."""
        if user.id == blocked_id:
            raise BadRequestError("Cannot block yourself")
        target = await self._get_user(blocked_id, include_frozen=True)
        if target.id in user.blocked_ids:
            raise ConflictError("User already blocked")

        user.blocked.append(target)
        self._unfriend(user, target)
        await self._delete_requests_between(user.id, target.id)
        await self.session.commit()
        logger.info(f"User {user.id} blocked {target.id}")

    @staticmethod
    def _unfriend(user: User, other: User) -> None:
        if other in user.friends:
            user.friends.remove(other)
        if user in other.friends:
            other.friends.remove(user)

    async def _delete_requests_between(self, first: UUID, second: UUID) -> None:
        await self.session.execute(
            delete(FriendRequest).where(
                or_(
                    (FriendRequest.sender_id == first) & (FriendRequest.receiver_id == second),
                    (FriendRequest.sender_id == second) & (FriendRequest.receiver_id == first),
                )
            )
        )

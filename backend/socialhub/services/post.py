"""Post service. Every read is scoped by the visibility predicate."""

import logging
import uuid
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialhub.models.post import AllowComment, Availability, Post
from socialhub.models.user import User
from socialhub.services.errors import BadRequestError, ForbiddenError, NotFoundError
from socialhub.services.identity import SqlIdentityStore
from socialhub.services.user import is_admin
from socialhub.services.visibility import post_visibility_clause

logger = logging.getLogger(__name__)


def _check_audience(
    author: User,
    availability: Availability,
    audience: list[UUID],
    selected: list[UUID],
) -> None:
    """specificFriends posts need a non-empty audience; newly selected users
    must be friends of the author."""
    if availability == Availability.SPECIFIC_FRIENDS and not audience:
        raise BadRequestError("specificFriends posts need at least one friend")
    if set(selected) - set(author.friend_ids):
        raise BadRequestError("specific friends must be friends of the author")


class PostService:
    """Service for posts and likes."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.identities = SqlIdentityStore(session)

    async def _resolve_users(self, author: User, user_ids: list[UUID], field: str) -> list[User]:
        """Load referenced users; all must exist and none may be the author."""
        unique_ids = list(dict.fromkeys(user_ids))
        if author.id in unique_ids:
            raise BadRequestError(f"{field} cannot include the author")
        users = await self.identities.find_many(unique_ids)
        if len(users) != len(unique_ids):
            raise NotFoundError(f"One or more {field} users not found")
        return users

    async def create(
        self,
        author: User,
        content: str,
        availability: Availability = Availability.PUBLIC,
        allow_comment: AllowComment = AllowComment.ALLOW,
        tags: list[UUID] | None = None,
        specific_friends: list[UUID] | None = None,
    ) -> Post:
        _check_audience(author, availability, specific_friends or [], specific_friends or [])

        post = Post(
            author_id=author.id,
            content=content,
            availability=availability,
            allow_comment=allow_comment,
            assets_folder_id=uuid.uuid4().hex,
            tags=await self._resolve_users(author, tags or [], "tags"),
            specific_friends=await self._resolve_users(
                author, specific_friends or [], "specific friends"
            ),
            likes=[],
        )
        self.session.add(post)
        await self.session.commit()
        logger.info(f"Post {post.id} created by {author.id}")
        return post

    async def list_visible(
        self,
        requester: User | None,
        page: int = 1,
        size: int = 20,
    ) -> tuple[list[Post], int]:
        """Page of posts the requester may read, newest first, plus total."""
        criteria = [Post.frozen_at.is_(None), post_visibility_clause(requester)]
        total = await self.session.scalar(select(func.count(Post.id)).where(*criteria))
        result = await self.session.execute(
            select(Post)
            .where(*criteria)
            .order_by(Post.created_at.desc())
            .offset((page - 1) * size)
            .limit(size)
        )
        return list(result.scalars().all()), total or 0

    async def get_visible(
        self, requester: User | None, post_id: UUID, *, include_frozen: bool = False
    ) -> Post:
        stmt = select(Post).where(Post.id == post_id, post_visibility_clause(requester))
        if not include_frozen:
            stmt = stmt.where(Post.frozen_at.is_(None))
        post = (await self.session.execute(stmt)).scalar_one_or_none()
        if post is None:
            raise NotFoundError("Post not found")
        return post

    async def set_like(self, requester: User, post_id: UUID, liked: bool) -> Post:
        post = await self.get_visible(requester, post_id)
        already = requester.id in post.like_ids
        if liked and not already:
            post.likes.append(requester)
        elif not liked and already:
            post.likes = [user for user in post.likes if user.id != requester.id]
        await self.session.commit()
        return post

    async def set_frozen(self, actor: User, post_id: UUID, frozen: bool) -> None:
        """Freeze or restore a post. Author or admin roles only."""
        post = await self.get_visible(actor, post_id, include_frozen=True)
        if post.author_id != actor.id and not is_admin(actor):
            raise ForbiddenError("Not authorized to change this post")
        if frozen == (post.frozen_at is not None):
            raise BadRequestError("Post is already frozen" if frozen else "Post is not frozen")

        if frozen:
            post.frozen_at = datetime.now(UTC)
            post.frozen_by = actor.id
        else:
            post.frozen_at = None
            post.frozen_by = None
            post.restored_at = datetime.now(UTC)
            post.restored_by = actor.id
        await self.session.commit()

    async def update(
        self,
        author: User,
        post_id: UUID,
        *,
        content: str | None = None,
        availability: Availability | None = None,
        allow_comment: AllowComment | None = None,
        tags: list[UUID] | None = None,
        specific_friends: list[UUID] | None = None,
    ) -> Post:
        """Apply a partial update. Only the author may edit a post."""
        post = await self.get_visible(author, post_id)
        if post.author_id != author.id:
            raise ForbiddenError("Only the author can edit this post")

        _check_audience(
            author,
            availability or post.availability,
            post.specific_friend_ids if specific_friends is None else specific_friends,
            specific_friends or [],
        )

        if content is not None:
            post.content = content
        if availability is not None:
            post.availability = availability
        if allow_comment is not None:
            post.allow_comment = allow_comment
        if tags is not None:
            post.tags = await self._resolve_users(author, tags, "tags")
        if specific_friends is not None:
            post.specific_friends = await self._resolve_users(
                author, specific_friends, "specific friends"
            )
        await self.session.commit()
        logger.info(f"Post {post.id} updated by {author.id}")
        return post

    async def delete(self, actor: User, post_id: UUID) -> None:
        """Delete a post and, through the foreign key, its comments.

        Author or admin roles only.
        """
        post = await self.get_visible(actor, post_id, include_frozen=True)
        if post.author_id != actor.id and not is_admin(actor):
            raise ForbiddenError("Not authorized to delete this post")

        await self.session.delete(post)
        await self.session.commit()
        logger.info(f"Post {post.id} deleted by {actor.id}")

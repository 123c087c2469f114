"""Comment service: comments, replies and their moderation.

A comment is reachable exactly when its post is readable by the requester;
anything else is reported as not found.
"""

import logging
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import ColumnElement, delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from socialhub.models.comment import Comment
from socialhub.models.post import AllowComment
from socialhub.models.user import User
from socialhub.services.errors import BadRequestError, ForbiddenError, NotFoundError
from socialhub.services.post import PostService
from socialhub.services.user import is_admin
from socialhub.services.visibility import build_comment_visibility

logger = logging.getLogger(__name__)

_Parent = aliased(Comment)


def _live_parent_clause() -> ColumnElement[bool]:
    """Top-level comments, or replies whose parent is not frozen."""
    return or_(
        Comment.parent_id.is_(None),
        select(_Parent.id)
        .where(_Parent.id == Comment.parent_id, _Parent.frozen_at.is_(None))
        .exists(),
    )


class CommentService:
    """Service for comments on posts."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.posts = PostService(session)

    async def _get(
        self,
        requester: User | None,
        post_id: UUID,
        comment_id: UUID,
        *,
        include_frozen: bool = False,
    ) -> Comment:
        stmt = select(Comment).where(
            Comment.id == comment_id,
            Comment.post_id == post_id,
            build_comment_visibility(requester),
        )
        if not include_frozen:
            stmt = stmt.where(Comment.frozen_at.is_(None), _live_parent_clause())
        comment = (await self.session.execute(stmt)).scalar_one_or_none()
        if comment is None:
            raise NotFoundError("Comment not found")
        return comment

    async def add(
        self,
        author: User,
        post_id: UUID,
        content: str,
        parent_id: UUID | None = None,
    ) -> Comment:
        post = await self.posts.get_visible(author, post_id)
        if post.allow_comment == AllowComment.DENY:
            raise BadRequestError("Comments are disabled for this post")
        if parent_id is not None:
            parent = await self._get(author, post_id, parent_id)
            if parent.is_reply:
                # replies are one level deep
                parent_id = parent.parent_id

        comment = Comment(
            post_id=post.id, author_id=author.id, content=content, parent_id=parent_id
        )
        self.session.add(comment)
        await self.session.commit()
        logger.info(f"Comment {comment.id} added to post {post.id} by {author.id}")
        return comment

    async def list_for_post(self, requester: User | None, post_id: UUID) -> list[Comment]:
        """Visible comments and replies of a post, oldest first."""
        result = await self.session.execute(
            select(Comment)
            .where(
                Comment.post_id == post_id,
                Comment.frozen_at.is_(None),
                _live_parent_clause(),
                build_comment_visibility(requester),
            )
            .order_by(Comment.created_at)
        )
        return list(result.scalars().all())

    async def get(self, requester: User | None, post_id: UUID, comment_id: UUID) -> Comment:
        return await self._get(requester, post_id, comment_id)

    async def update(
        self, author: User, post_id: UUID, comment_id: UUID, content: str
    ) -> Comment:
        """Edit a comment's text. Only its author may."""
        comment = await self._get(author, post_id, comment_id)
        if comment.author_id != author.id:
            raise ForbiddenError("Only the author can edit this comment")
        comment.content = content
        await self.session.commit()
        return comment

    async def set_frozen(
        self, actor: User, post_id: UUID, comment_id: UUID, frozen: bool
    ) -> None:
        """Freeze or restore a comment. Admin roles only."""
        if not is_admin(actor):
            raise ForbiddenError("Not authorized to moderate comments")
        comment = await self._get(actor, post_id, comment_id, include_frozen=True)
        if frozen == (comment.frozen_at is not None):
            raise BadRequestError(
                "Comment is already frozen" if frozen else "Comment is not frozen"
            )

        if frozen:
            comment.frozen_at = datetime.now(UTC)
            comment.frozen_by = actor.id
        else:
            comment.frozen_at = None
            comment.frozen_by = None
            comment.restored_at = datetime.now(UTC)
            comment.restored_by = actor.id
        await self.session.commit()
        logger.info(f"Comment {comment.id} {'frozen' if frozen else 'restored'} by {actor.id}")

    async def delete(self, actor: User, post_id: UUID, comment_id: UUID) -> None:
        """Delete a comment and its replies. Author or admin roles only."""
        comment = await self._get(actor, post_id, comment_id, include_frozen=True)
        if comment.author_id != actor.id and not is_admin(actor):
            raise ForbiddenError("Not authorized to delete this comment")

        await self.session.execute(
            delete(Comment)
            .where(or_(Comment.id == comment.id, Comment.parent_id == comment.id))
            .execution_options(synchronize_session="fetch")
        )
        await self.session.commit()
        logger.info(f"Comment {comment.id} deleted by {actor.id}")

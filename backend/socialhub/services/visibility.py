"""Per-request visibility predicates for posts and comments.

The predicate list is rebuilt on every call from the requester's current
friend list; callers combine it with ``or_()``. Nothing here is cached, so a
new or removed friendship takes effect on the very next request.
"""

from sqlalchemy import ColumnElement, and_, or_

from socialhub.models.comment import Comment
from socialhub.models.post import Availability, Post
from socialhub.models.user import User


def build_visibility_predicate(requester: User | None) -> list[ColumnElement[bool]]:
    """Alternative conditions under which ``requester`` may read a post.

    Anonymous requesters only get the public condition.
    """
    conditions: list[ColumnElement[bool]] = [Post.availability == Availability.PUBLIC]
    if requester is None:
        return conditions

    circle = [*requester.friend_ids, requester.id]
    conditions.extend(
        [
            and_(Post.availability == Availability.FRIENDS, Post.author_id.in_(circle)),
            and_(Post.availability == Availability.PRIVATE, Post.author_id == requester.id),
            and_(
                Post.availability == Availability.SPECIFIC_FRIENDS,
                Post.specific_friends.any(User.id == requester.id),
            ),
            and_(
                Post.availability != Availability.PRIVATE,
                Post.tags.any(User.id == requester.id),
            ),
        ]
    )
    return conditions


def post_visibility_clause(requester: User | None) -> ColumnElement[bool]:
    return or_(*build_visibility_predicate(requester))


def build_comment_visibility(requester: User | None) -> ColumnElement[bool]:
    """A comment is visible exactly when its (unfrozen) post is visible."""
    return Comment.post.has(
        and_(Post.frozen_at.is_(None), post_visibility_clause(requester))
    )

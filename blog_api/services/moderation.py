"""Moderation state machine for posts.

A post is created ``pending``. Moderators move it to ``published`` or
``rejected``; a substantive edit of a published post sends it back to
``pending``, and the author of a rejected post may resubmit it. Every status
change goes through :func:`apply_transition`, which also keeps
``published_at`` and ``rejection_reason`` consistent with the new status.
"""
import logging
from datetime import datetime, UTC
from enum import Enum

from sqlalchemy.orm import Session

from blog_api.core.errors import (
    AlreadyPublished,
    InvalidTransitionError,
    PostNotFound,
    ValidationFailedError,
)
from blog_api.models.post import Post, PostStatus
from blog_api.models.user import User
from blog_api.services.pagination import Page, paginate
from blog_api.services.permissions import ensure_author, ensure_moderator
from blog_api.services.queries import PostSort, post_ordering, post_search_filter
from blog_api.services.visibility import is_active

logger = logging.getLogger(__name__)


class Action(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"
    EDIT = "edit"
    RESUBMIT = "resubmit"


# action -> {current status: next status}; a status missing from the map is
# either an error (approve, resubmit) or a no-op (edit)
TRANSITIONS = {
    Action.APPROVE: {
        PostStatus.PENDING: PostStatus.PUBLISHED,
        PostStatus.REJECTED: PostStatus.PUBLISHED,
    },
    Action.REJECT: {
        PostStatus.PENDING: PostStatus.REJECTED,
        PostStatus.PUBLISHED: PostStatus.REJECTED,
        PostStatus.REJECTED: PostStatus.REJECTED,
    },
    Action.EDIT: {
        PostStatus.PUBLISHED: PostStatus.PENDING,
    },
    Action.RESUBMIT: {
        PostStatus.REJECTED: PostStatus.PENDING,
    },
}


def next_status(current: PostStatus, action: Action) -> PostStatus:
    """Resolve the target status or raise for a disallowed transition."""
    target = TRANSITIONS[action].get(current)
    if target is not None:
        return target
    if action == Action.EDIT:
        return current
    if action == Action.APPROVE and current == PostStatus.PUBLISHED:
        raise AlreadyPublished()
    raise InvalidTransitionError(f"Cannot {action.value} a {current.value} post")


def apply_transition(post: Post, action: Action, reason: str | None = None,
                     now: datetime | None = None) -> bool:
    """Move ``post`` through ``action`` and fix up the lifecycle fields.

    Args:
        post: post to mutate in place (not committed)
        action: transition to apply
        reason: rejection reason, required for ``Action.REJECT``
        now: timestamp used for ``published_at``

    Returns:
        True when the status changed.

    Raises:
        AlreadyPublished: approving a published post
        InvalidTransitionError: any other transition missing from the table
        ValidationFailedError: rejecting without a reason
    """
    if action == Action.REJECT:
        reason = (reason or "").strip()
        if not reason:
            raise ValidationFailedError("Rejection reason is required")

    previous = post.status
    target = next_status(previous, action)
    if target == previous and action != Action.REJECT:
        # edit of a pending or rejected post keeps its lifecycle fields
        return False

    if target == PostStatus.PUBLISHED:
        post.published_at = now or datetime.now(UTC)
        post.rejection_reason = ""
    elif target == PostStatus.REJECTED:
        post.published_at = None
        post.rejection_reason = reason
    else:
        post.published_at = None
        post.rejection_reason = ""
    post.status = target

    if target != previous:
        logger.info("Post %s moved %s -> %s via %s", post.id, previous.value, target.value, action.value)
    return target != previous


def _get_live_post(session: Session, post_id: str) -> Post:
    post = session.query(Post).filter(Post.id == post_id, is_active(Post)).first()
    if not post:
        raise PostNotFound()
    return post


def approve_post(session: Session, moderator: User, post_id: str) -> Post:
    ensure_moderator(moderator)
    post = _get_live_post(session, post_id)
    apply_transition(post, Action.APPROVE)
    session.commit()
    session.refresh(post)
    return post


def reject_post(session: Session, moderator: User, post_id: str, reason: str) -> Post:
    ensure_moderator(moderator)
    post = _get_live_post(session, post_id)
    apply_transition(post, Action.REJECT, reason=reason)
    session.commit()
    session.refresh(post)
    return post


def resubmit_post(session: Session, principal: User, post_id: str) -> Post:
    """Send a rejected post back to the moderation queue"""
    post = _get_live_post(session, post_id)
    ensure_author(principal, post.author_id, "resubmit this post")
    apply_transition(post, Action.RESUBMIT)
    session.commit()
    session.refresh(post)
    return post


def list_pending_posts(session: Session, moderator: User, page: int = 1, limit: int = 20) -> Page:
    ensure_moderator(moderator)
    query = session.query(Post).filter(
        Post.status == PostStatus.PENDING,
        is_active(Post),
    ).order_by(Post.created_at.desc(), Post.id)
    return paginate(query, page, limit)


def list_all_posts_admin(
    session: Session,
    moderator: User,
    status: PostStatus | None = None,
    search: str | None = None,
    sort: PostSort = PostSort.NEWEST,
    page: int = 1,
    limit: int = 20,
) -> Page:
    """Every non-deleted post regardless of status"""
    ensure_moderator(moderator)
    query = session.query(Post).filter(is_active(Post))
    if status:
        query = query.filter(Post.status == status)
    if search:
        query = query.filter(post_search_filter(search))
    query = query.order_by(*post_ordering(sort, Post.created_at))
    return paginate(query, page, limit)

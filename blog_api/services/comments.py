"""Threaded comments.

Top-level comments own an ordered reply list; replies are one level deep.
Deleting a comment tombstones it in place: the row, its id and its position
in the parent's reply list survive, only the content is redacted.
"""
import logging
from enum import Enum

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from blog_api.core.errors import (
    CommentNotFound,
    ParentNotFound,
    PostNotFound,
    PostNotPublished,
    ReplyDepthExceeded,
)
from blog_api.models.comment import (
    ADMIN_DELETED_PLACEHOLDER,
    DELETED_PLACEHOLDER,
    REPLY_DEPTH,
    TOP_LEVEL_DEPTH,
    Comment,
)
from blog_api.models.lifecycle import EntityState
from blog_api.models.like import TargetType
from blog_api.models.post import Post, PostStatus
from blog_api.models.user import User
from blog_api.services import counters
from blog_api.services.pagination import Page, paginate
from blog_api.services.permissions import ensure_author, ensure_author_or_moderator
from blog_api.services.visibility import is_active

logger = logging.getLogger(__name__)

_comments = Comment.__table__


class CommentSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    LIKES = "likes"


_COMMENT_ORDERING = {
    CommentSort.NEWEST: (Comment.created_at.desc(), Comment.id),
    CommentSort.OLDEST: (Comment.created_at.asc(), Comment.id),
    CommentSort.LIKES: (Comment.likes_count.desc(), Comment.created_at.desc(), Comment.id),
}


def get_live_comment(session: Session, comment_id: str) -> Comment:
    comment = session.query(Comment).filter(Comment.id == comment_id, is_active(Comment)).first()
    if not comment:
        raise CommentNotFound()
    return comment


def _append_reply(session: Session, parent_id: str) -> int:
    """Reserve the next slot in the parent's reply list and return it."""
    session.execute(
        update(_comments)
        .where(_comments.c.id == parent_id)
        .values(reply_total=_comments.c.reply_total + 1)
    )
    return session.execute(
        select(_comments.c.reply_total).where(_comments.c.id == parent_id)
    ).scalar_one()


def create_comment(
    session: Session,
    principal: User,
    post_id: str,
    content: str,
    parent_id: str | None = None,
) -> Comment:
    """Create a comment or a reply on a published post.

    The comment row, the parent's reply slot and the post's
    ``comments_count`` increment are committed together.

    Raises:
        PostNotFound: the post is missing or deleted
        PostNotPublished: the post is pending or rejected
        ParentNotFound: ``parent_id`` names no comment on this post
        ReplyDepthExceeded: ``parent_id`` names a reply
    """
    post = session.query(Post).filter(Post.id == post_id, is_active(Post)).first()
    if not post:
        raise PostNotFound()
    if post.status != PostStatus.PUBLISHED:
        raise PostNotPublished("Cannot comment on unpublished post")

    depth = TOP_LEVEL_DEPTH
    reply_seq = 0
    if parent_id:
        # a deleted parent still anchors its thread
        parent = session.query(Comment).filter(Comment.id == parent_id).first()
        if not parent or parent.post_id != post_id:
            raise ParentNotFound()
        if parent.is_reply:
            raise ReplyDepthExceeded()
        depth = REPLY_DEPTH
        reply_seq = _append_reply(session, parent_id)

    comment = Comment(
        post_id=post_id,
        author_id=principal.id,
        content=content,
        parent_id=parent_id or None,
        depth=depth,
        reply_seq=reply_seq,
    )
    session.add(comment)
    counters.increment_comments(session, post_id)
    session.commit()
    session.refresh(comment)
    logger.info("Comment %s created on post %s%s", comment.id, post_id,
                f" as reply to {parent_id}" if parent_id else "")
    return comment


def reply_ids(session: Session, comment_id: str) -> list[str]:
    """Ids in the comment's reply list, tombstones included."""
    return list(session.execute(
        select(Comment.id)
        .where(Comment.parent_id == comment_id)
        .order_by(Comment.reply_seq, Comment.created_at)
    ).scalars())


def list_comments(
    session: Session,
    post_id: str,
    page: int = 1,
    limit: int = 20,
    sort: CommentSort = CommentSort.NEWEST,
) -> Page:
    """Active top-level comments of a post, each with its active replies.

    Sorting and paging apply to top-level comments only; replies keep their
    reply-list order. Each item of the returned page is a
    ``(comment, replies)`` tuple.
    """
    post = session.query(Post).filter(Post.id == post_id, is_active(Post)).first()
    if not post:
        raise PostNotFound()

    query = session.query(Comment).filter(
        Comment.post_id == post_id,
        Comment.parent_id.is_(None),
        is_active(Comment),
    ).order_by(*_COMMENT_ORDERING[CommentSort(sort)])
    result = paginate(query, page, limit)

    parent_ids = [comment.id for comment in result.items]
    replies_by_parent = {parent_id: [] for parent_id in parent_ids}
    if parent_ids:
        replies = session.query(Comment).filter(
            Comment.parent_id.in_(parent_ids),
            is_active(Comment),
        ).order_by(Comment.reply_seq, Comment.created_at).all()
        for reply in replies:
            replies_by_parent[reply.parent_id].append(reply)

    result.items = [(comment, replies_by_parent[comment.id]) for comment in result.items]
    return result


def list_all_comments(session: Session, page: int = 1, limit: int = 20, post_id: str | None = None) -> Page:
    """Moderator listing of every active comment, newest first"""
    query = session.query(Comment).filter(is_active(Comment))
    if post_id:
        query = query.filter(Comment.post_id == post_id)
    query = query.order_by(Comment.created_at.desc(), Comment.id)
    return paginate(query, page, limit)


def update_comment(session: Session, principal: User, comment_id: str, content: str) -> Comment:
    comment = get_live_comment(session, comment_id)
    ensure_author(principal, comment.author_id, "update this comment")
    comment.content = content
    comment.is_edited = True
    session.commit()
    session.refresh(comment)
    return comment


def tombstone_comment(session: Session, comment_id: str, placeholder: str) -> bool:
    """Flip an active comment to deleted and release its count on the post.

    The flip is conditional on the comment still being active, so two
    concurrent deletions decrement the post counter once. Does not commit.

    Returns:
        True when this call performed the deletion.
    """
    post_id = session.execute(
        select(_comments.c.post_id).where(_comments.c.id == comment_id)
    ).scalar_one_or_none()
    if post_id is None:
        return False
    flipped = session.execute(
        update(_comments)
        .where(_comments.c.id == comment_id, _comments.c.state == EntityState.ACTIVE)
        .values(state=EntityState.DELETED, content=placeholder)
    ).rowcount
    if flipped:
        counters.decrement_comments(session, post_id)
    return bool(flipped)


def soft_delete_comment(session: Session, principal: User, comment_id: str) -> None:
    """Delete a comment as its author or as a moderator"""
    comment = get_live_comment(session, comment_id)
    ensure_author_or_moderator(principal, comment.author_id, "delete this comment")
    placeholder = DELETED_PLACEHOLDER if principal.id == comment.author_id else ADMIN_DELETED_PLACEHOLDER
    if not tombstone_comment(session, comment.id, placeholder):
        session.rollback()
        raise CommentNotFound()
    session.commit()
    logger.info("Comment %s deleted by %s", comment_id, principal.id)


def toggle_comment_like(session: Session, principal: User, comment_id: str) -> tuple[int, bool]:
    comment = get_live_comment(session, comment_id)
    return counters.toggle_like(session, TargetType.COMMENT, comment.id, principal.id)

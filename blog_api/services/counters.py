"""Engagement counter policy.

``likes_count`` on posts and comments is a cached cardinality of the like set
and is only ever recomputed from it. ``comments_count`` on posts is a running
tally moved by relative updates in the same transaction as the comment write;
``reconcile`` recomputes both from source rows when drift is suspected.
"""
import logging
import uuid
from datetime import datetime, UTC

from sqlalchemy import and_, case, delete, func, insert, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.models.comment import Comment
from blog_api.models.lifecycle import EntityState
from blog_api.models.like import Like, TargetType
from blog_api.models.post import Post

logger = logging.getLogger(__name__)

_likes = Like.__table__
_posts = Post.__table__
_comments = Comment.__table__

_TARGET_TABLES = {
    TargetType.POST: _posts,
    TargetType.COMMENT: _comments,
}


def _like_filter(target_type: TargetType, target_id: str):
    return and_(_likes.c.target_type == target_type, _likes.c.target_id == target_id)


def _like_count_subquery(target_type: TargetType, id_column):
    return (
        select(func.count(_likes.c.id))
        .where(_likes.c.target_type == target_type, _likes.c.target_id == id_column)
        .scalar_subquery()
    )


def _insert_like_if_absent(session: Session, target_type: TargetType, target_id: str, user_id: str) -> bool:
    """Insert a like row unless one exists; True when this call inserted it."""
    values = {
        "id": str(uuid.uuid4()),
        "user_id": user_id,
        "target_id": target_id,
        "target_type": target_type,
        "created_at": datetime.now(UTC),
    }
    dialect = session.get_bind().dialect.name
    if dialect == "sqlite":
        stmt = sqlite_insert(_likes).values(**values).on_conflict_do_nothing()
    elif dialect == "postgresql":
        stmt = pg_insert(_likes).values(**values).on_conflict_do_nothing()
    else:
        try:
            with session.begin_nested():
                session.execute(insert(_likes).values(**values))
        except IntegrityError:
            return False
        return True
    return session.execute(stmt).rowcount == 1


def refresh_likes_count(session: Session, target_type: TargetType, target_id: str) -> int:
    """Recompute ``likes_count`` from the like set in a single statement."""
    table = _TARGET_TABLES[target_type]
    session.execute(
        update(table)
        .where(table.c.id == target_id)
        .values(likes_count=_like_count_subquery(target_type, table.c.id))
    )
    return session.execute(select(table.c.likes_count).where(table.c.id == target_id)).scalar_one()


def toggle_like(session: Session, target_type: TargetType, target_id: str, user_id: str) -> tuple[int, bool]:
    """Flip ``user_id``'s membership in the target's like set.

    Membership is decided by the storage layer: the conditional delete
    reports whether a like existed, and the insert ignores a row that a
    concurrent caller created first. The caller is expected to have checked
    that the target exists.

    Returns:
        ``(likes_count, is_liked)`` after the toggle.
    """
    removed = session.execute(
        delete(_likes).where(_like_filter(target_type, target_id), _likes.c.user_id == user_id)
    ).rowcount
    if removed:
        is_liked = False
    else:
        # a concurrent like from the same principal still leaves it liked
        _insert_like_if_absent(session, target_type, target_id, user_id)
        is_liked = True
    likes_count = refresh_likes_count(session, target_type, target_id)
    session.commit()
    logger.info("%s %s %s by %s, likes_count=%d", target_type.value, target_id,
                "liked" if is_liked else "unliked", user_id, likes_count)
    return likes_count, is_liked


def like_user_ids(session: Session, target_type: TargetType, target_id: str) -> list[str]:
    """The live like set, oldest like first."""
    return list(session.execute(
        select(_likes.c.user_id)
        .where(_like_filter(target_type, target_id))
        .order_by(_likes.c.created_at)
    ).scalars())


def is_liked_by(session: Session, target_type: TargetType, target_id: str, user_id: str) -> bool:
    return session.execute(
        select(_likes.c.id).where(_like_filter(target_type, target_id), _likes.c.user_id == user_id)
    ).first() is not None


def increment_comments(session: Session, post_id: str) -> None:
    """Add one to ``comments_count``; does not commit."""
    session.execute(
        update(_posts)
        .where(_posts.c.id == post_id)
        .values(comments_count=_posts.c.comments_count + 1)
    )


def decrement_comments(session: Session, post_id: str) -> None:
    """Subtract one from ``comments_count``, never below zero; does not commit."""
    session.execute(
        update(_posts)
        .where(_posts.c.id == post_id)
        .values(comments_count=case(
            (_posts.c.comments_count > 0, _posts.c.comments_count - 1),
            else_=0,
        ))
    )


def _active_comment_count_subquery():
    return (
        select(func.count(_comments.c.id))
        .where(_comments.c.post_id == _posts.c.id, _comments.c.state == EntityState.ACTIVE)
        .scalar_subquery()
    )


def reconcile(session: Session, post_id: str | None = None) -> int:
    """Recompute cached counters from source rows.

    Only rows whose cached value differs are rewritten. Limits the pass to
    one post (and its comments) when ``post_id`` is given.

    Returns:
        Number of posts and comments corrected.
    """
    post_likes = _like_count_subquery(TargetType.POST, _posts.c.id)
    post_comments = _active_comment_count_subquery()
    comment_likes = _like_count_subquery(TargetType.COMMENT, _comments.c.id)

    post_scope = [] if post_id is None else [_posts.c.id == post_id]
    comment_scope = [] if post_id is None else [_comments.c.post_id == post_id]

    corrected = session.execute(
        update(_posts)
        .where(*post_scope, (_posts.c.likes_count != post_likes) | (_posts.c.comments_count != post_comments))
        .values(likes_count=post_likes, comments_count=post_comments)
    ).rowcount
    corrected += session.execute(
        update(_comments)
        .where(*comment_scope, _comments.c.likes_count != comment_likes)
        .values(likes_count=comment_likes)
    ).rowcount
    session.commit()
    logger.info("Counter reconciliation corrected %d row(s)%s", corrected,
                f" for post {post_id}" if post_id else "")
    return corrected

"""Cascading soft deletes.

Cascades fan out one document at a time, each in its own transaction. A
failure on one document is rolled back, logged and reported, and the fan-out
carries on: callers get a :class:`CascadeReport` that says which documents
were not cascaded rather than an all-or-nothing result.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from blog_api.core.errors import InvalidTransitionError, PostNotFound, UserNotFound
from blog_api.models.comment import ADMIN_DELETED_PLACEHOLDER, DELETED_PLACEHOLDER, Comment
from blog_api.models.lifecycle import EntityState
from blog_api.models.post import Post
from blog_api.models.user import User
from blog_api.services.comments import tombstone_comment
from blog_api.services.permissions import ensure_moderator

logger = logging.getLogger(__name__)

_posts = Post.__table__


@dataclass
class CascadeReport:
    """Outcome of a cascade fan-out"""
    posts_deleted: list[str] = field(default_factory=list)
    comments_deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)

    @property
    def partial(self) -> bool:
        return bool(self.failed)


def _cascade_step(session: Session, report: CascadeReport, document_id: str, step) -> bool:
    """Run ``step`` and commit it alone; record the id on failure."""
    try:
        done = step()
        session.commit()
        return done
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Cascade step failed for %s", document_id)
        report.failed.append(document_id)
        return False


def _soft_delete_post_row(session: Session, post_id: str) -> bool:
    return bool(session.execute(
        update(_posts)
        .where(_posts.c.id == post_id, _posts.c.state == EntityState.ACTIVE)
        .values(state=EntityState.DELETED)
    ).rowcount)


def admin_delete_post(session: Session, moderator: User, post_id: str) -> CascadeReport:
    """Moderator deletion: hide the post and tombstone every comment on it"""
    ensure_moderator(moderator)
    post = session.query(Post).filter(Post.id == post_id).first()
    if not post or post.is_deleted:
        raise PostNotFound()

    report = CascadeReport()
    if _cascade_step(session, report, post_id, lambda: _soft_delete_post_row(session, post_id)):
        report.posts_deleted.append(post_id)
    if report.partial:
        return report

    comment_ids = session.execute(
        select(Comment.id).where(Comment.post_id == post_id, Comment.state == EntityState.ACTIVE)
    ).scalars().all()
    for comment_id in comment_ids:
        if _cascade_step(session, report, comment_id,
                         lambda cid=comment_id: tombstone_comment(session, cid, ADMIN_DELETED_PLACEHOLDER)):
            report.comments_deleted.append(comment_id)

    logger.info("Admin deleted post %s: %d comment(s) cascaded, %d failure(s)",
                post_id, len(report.comments_deleted), len(report.failed))
    return report


def deactivate_account(session: Session, moderator: User, user_id: str) -> CascadeReport:
    """Deactivate a user and soft-delete everything they authored.

    Comments left by other users on the deactivated user's posts are kept.
    """
    ensure_moderator(moderator)
    if user_id == moderator.id:
        raise InvalidTransitionError("You cannot deactivate your own account")
    user = session.get(User, user_id)
    if not user:
        raise UserNotFound()

    report = CascadeReport()
    post_ids = session.execute(
        select(Post.id).where(Post.author_id == user_id, Post.state == EntityState.ACTIVE)
    ).scalars().all()
    for post_id in post_ids:
        if _cascade_step(session, report, post_id, lambda pid=post_id: _soft_delete_post_row(session, pid)):
            report.posts_deleted.append(post_id)

    comment_ids = session.execute(
        select(Comment.id).where(Comment.author_id == user_id, Comment.state == EntityState.ACTIVE)
    ).scalars().all()
    for comment_id in comment_ids:
        if _cascade_step(session, report, comment_id,
                         lambda cid=comment_id: tombstone_comment(session, cid, DELETED_PLACEHOLDER)):
            report.comments_deleted.append(comment_id)

    def _deactivate():
        user.is_active = False
        return True

    _cascade_step(session, report, user_id, _deactivate)

    if report.partial:
        logger.warning("Account %s deactivated with %d failed cascade step(s): %s",
                       user_id, len(report.failed), ", ".join(report.failed))
    else:
        logger.info("Account %s deactivated: %d post(s), %d comment(s) cascaded",
                    user_id, len(report.posts_deleted), len(report.comments_deleted))
    return report

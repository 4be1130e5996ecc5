"""Visibility predicates shared by every read path.

Soft-deleted rows are never physically removed, so each query that feeds a
reader-facing view or a derived counter filters through these helpers.
"""
from sqlalchemy import and_

from blog_api.models.lifecycle import EntityState
from blog_api.models.post import Post, PostStatus
from blog_api.models.user import User


def is_active(model):
    """SQL filter: the row has not been soft-deleted."""
    return model.state == EntityState.ACTIVE


def publicly_visible_post():
    """SQL filter: the post is published and not deleted."""
    return and_(is_active(Post), Post.status == PostStatus.PUBLISHED)


def accepts_engagement(post: Post) -> bool:
    """Whether readers may comment on or like ``post``."""
    return post.state == EntityState.ACTIVE and post.status == PostStatus.PUBLISHED


def can_view_post(post: Post, viewer: User | None) -> bool:
    """Pending and rejected posts are visible to their author and moderators only."""
    if post.state != EntityState.ACTIVE:
        return False
    if post.status == PostStatus.PUBLISHED:
        return True
    if viewer is None:
        return False
    return viewer.id == post.author_id or viewer.is_admin

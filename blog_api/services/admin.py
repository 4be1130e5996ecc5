"""Moderator account management and dashboard figures."""
import logging

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from blog_api.core.errors import InvalidTransitionError, UserNotFound
from blog_api.models.comment import Comment
from blog_api.models.post import Post, PostStatus
from blog_api.models.user import User, UserRole
from blog_api.services.pagination import Page, paginate
from blog_api.services.permissions import ensure_moderator
from blog_api.services.visibility import is_active, publicly_visible_post

logger = logging.getLogger(__name__)


def _get_other_user(session: Session, moderator: User, user_id: str, action: str) -> User:
    if user_id == moderator.id:
        raise InvalidTransitionError(f"You cannot {action} your own account")
    user = session.get(User, user_id)
    if not user:
        raise UserNotFound()
    return user


def list_users(session: Session, moderator: User, search: str | None = None,
               role: UserRole | None = None, page: int = 1, limit: int = 20) -> Page:
    """Users with the number of non-deleted posts each has written.

    Items of the returned page are ``(user, post_count)`` tuples.
    """
    ensure_moderator(moderator)
    query = session.query(User)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            User.username.ilike(pattern),
            User.email.ilike(pattern),
            User.full_name.ilike(pattern),
        ))
    if role:
        query = query.filter(User.role == role)
    result = paginate(query.order_by(User.created_at.desc(), User.id), page, limit)

    user_ids = [user.id for user in result.items]
    counts = dict(
        session.query(Post.author_id, func.count(Post.id))
        .filter(Post.author_id.in_(user_ids), is_active(Post))
        .group_by(Post.author_id)
        .all()
    ) if user_ids else {}
    result.items = [(user, counts.get(user.id, 0)) for user in result.items]
    return result


def toggle_user_status(session: Session, moderator: User, user_id: str) -> User:
    """Flip a user's active flag without touching their content"""
    ensure_moderator(moderator)
    user = _get_other_user(session, moderator, user_id, "deactivate")
    user.is_active = not user.is_active
    session.commit()
    session.refresh(user)
    logger.info("User %s %s by %s", user_id, "activated" if user.is_active else "deactivated", moderator.id)
    return user


def update_user_role(session: Session, moderator: User, user_id: str, role: UserRole) -> User:
    ensure_moderator(moderator)
    user = _get_other_user(session, moderator, user_id, "change the role of")
    user.role = role
    session.commit()
    session.refresh(user)
    logger.info("User %s role set to %s by %s", user_id, role.value, moderator.id)
    return user


def dashboard_stats(session: Session, moderator: User) -> dict:
    ensure_moderator(moderator)
    live_posts = session.query(Post).filter(is_active(Post))

    def count_status(status: PostStatus) -> int:
        return live_posts.filter(Post.status == status).count()

    total_views, total_likes = session.query(
        func.coalesce(func.sum(Post.views), 0),
        func.coalesce(func.sum(Post.likes_count), 0),
    ).filter(is_active(Post)).one()

    recent_posts = live_posts.order_by(Post.created_at.desc(), Post.id).limit(5).all()

    top_authors = (
        session.query(User.id, User.username, User.full_name, func.count(Post.id).label("post_count"))
        .join(Post, Post.author_id == User.id)
        .filter(publicly_visible_post())
        .group_by(User.id, User.username, User.full_name)
        .order_by(func.count(Post.id).desc(), User.username)
        .limit(5)
        .all()
    )

    categories = (
        session.query(Post.category, func.count(Post.id))
        .filter(publicly_visible_post())
        .group_by(Post.category)
        .order_by(func.count(Post.id).desc())
        .all()
    )

    return {
        "users": {"total": session.query(User).filter(User.is_active.is_(True)).count()},
        "posts": {
            "total": live_posts.count(),
            "published": count_status(PostStatus.PUBLISHED),
            "pending": count_status(PostStatus.PENDING),
            "rejected": count_status(PostStatus.REJECTED),
        },
        "engagement": {
            "total_views": int(total_views),
            "total_likes": int(total_likes),
            "total_comments": session.query(Comment).filter(is_active(Comment)).count(),
        },
        "recent_posts": recent_posts,
        "top_authors": [
            {"id": row.id, "username": row.username, "full_name": row.full_name, "count": row.post_count}
            for row in top_authors
        ],
        "category_stats": [
            {"category": category, "count": count} for category, count in categories
        ],
    }

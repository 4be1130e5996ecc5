"""Post entity operations: creation, edits, soft delete, reads and likes."""
import logging
from datetime import datetime, timedelta, UTC

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from blog_api.core.config import get_settings
from blog_api.core.errors import ConflictError, PostNotFound, PostNotPublished
from blog_api.models.lifecycle import EntityState
from blog_api.models.like import TargetType
from blog_api.models.post import Post, PostCategory, PostStatus
from blog_api.models.user import User
from blog_api.services import counters
from blog_api.services.moderation import Action, apply_transition
from blog_api.services.pagination import Page, paginate
from blog_api.services.permissions import ensure_author
from blog_api.services.queries import PostSort, post_ordering, post_search_filter
from blog_api.services.visibility import accepts_engagement, can_view_post, is_active, publicly_visible_post
from blog_api.utils.text import current_millis, derive_excerpt, make_slug, read_time

logger = logging.getLogger(__name__)

# fields an author may change through edit_post
EDITABLE_FIELDS = ("title", "content", "excerpt", "cover_image", "category", "tags")


def _commit_or_conflict(session: Session) -> None:
    try:
        session.commit()
    except IntegrityError as exc:
        session.rollback()
        if "slug" not in str(exc.orig):
            raise
        raise ConflictError("A post with this slug already exists") from exc


def assign_slug(session: Session, title: str) -> str:
    """Slug for ``title`` suffixed with the current time in milliseconds.

    A suffix already taken (same title within the same millisecond) is
    bumped forward until free; a concurrent insert that still collides is
    rejected by the unique index.
    """
    stamp = current_millis()
    while True:
        slug = make_slug(title, stamp)
        if session.query(Post.id).filter(Post.slug == slug).first() is None:
            return slug
        stamp += 1


def get_live_post(session: Session, post_id: str) -> Post:
    """Load a non-deleted post or raise ``PostNotFound``."""
    post = session.query(Post).filter(Post.id == post_id, is_active(Post)).first()
    if not post:
        raise PostNotFound()
    return post


def create_post(
    session: Session,
    principal: User,
    title: str,
    content: str,
    category: PostCategory = PostCategory.OTHER,
    excerpt: str | None = None,
    cover_image: str | None = None,
    tags: list[str] | None = None,
) -> Post:
    """Create a post; it always starts in the moderation queue"""
    settings = get_settings()
    post = Post(
        author_id=principal.id,
        title=title,
        slug=assign_slug(session, title),
        content=content,
        excerpt=excerpt or derive_excerpt(content, settings.excerpt_length),
        cover_image=cover_image or "",
        category=category,
        tags=list(tags or []),
        status=PostStatus.PENDING,
        read_time=read_time(content, settings.words_per_minute),
    )
    session.add(post)
    _commit_or_conflict(session)
    session.refresh(post)
    logger.info("Post %s created by %s, pending approval", post.id, principal.id)
    return post


def edit_post(session: Session, principal: User, post_id: str, **fields) -> Post:
    """Apply an author's edit.

    Only keys present in ``fields`` (and not None) are applied. Supplying a
    title or content demotes a published post back to pending.
    """
    unknown = set(fields) - set(EDITABLE_FIELDS)
    if unknown:
        raise TypeError(f"Unexpected fields: {', '.join(sorted(unknown))}")

    settings = get_settings()
    post = get_live_post(session, post_id)
    ensure_author(principal, post.author_id, "update this post")

    title = fields.get("title")
    content = fields.get("content")
    excerpt = fields.get("excerpt")

    if title is not None and title != post.title:
        post.slug = assign_slug(session, title)
    if title is not None:
        post.title = title

    if content is not None and content != post.content:
        previous_auto_excerpt = derive_excerpt(post.content, settings.excerpt_length)
        if excerpt is None and post.excerpt == previous_auto_excerpt:
            post.excerpt = derive_excerpt(content, settings.excerpt_length)
        post.content = content
        post.read_time = read_time(content, settings.words_per_minute)

    if excerpt is not None:
        post.excerpt = excerpt
    if fields.get("cover_image") is not None:
        post.cover_image = fields["cover_image"]
    if fields.get("category") is not None:
        post.category = fields["category"]
    if fields.get("tags") is not None:
        post.tags = list(fields["tags"])

    if title is not None or content is not None:
        apply_transition(post, Action.EDIT)

    _commit_or_conflict(session)
    session.refresh(post)
    return post


def soft_delete_post(session: Session, principal: User, post_id: str) -> None:
    """Author deletion: hides the post, leaves its comments in place"""
    post = get_live_post(session, post_id)
    ensure_author(principal, post.author_id, "delete this post")
    post.state = EntityState.DELETED
    session.commit()
    logger.info("Post %s soft-deleted by its author", post_id)


def list_published_posts(
    session: Session,
    category: PostCategory | str | None = None,
    author_id: str | None = None,
    search: str | None = None,
    sort: PostSort = PostSort.NEWEST,
    page: int = 1,
    limit: int = 10,
) -> Page:
    query = session.query(Post).filter(publicly_visible_post())
    if category and category != "All":
        query = query.filter(Post.category == PostCategory(category))
    if author_id:
        query = query.filter(Post.author_id == author_id)
    if search:
        query = query.filter(post_search_filter(search))
    query = query.order_by(*post_ordering(sort))
    return paginate(query, page, limit)


def list_my_posts(session: Session, principal: User, status: PostStatus | None = None,
                  page: int = 1, limit: int = 10) -> Page:
    query = session.query(Post).filter(Post.author_id == principal.id, is_active(Post))
    if status:
        query = query.filter(Post.status == status)
    query = query.order_by(Post.created_at.desc(), Post.id)
    return paginate(query, page, limit)


def get_post_by_slug(session: Session, slug: str, viewer: User | None = None) -> Post:
    """Fetch a post for display and count the view.

    Views by the author are not counted. Posts the viewer may not see are
    reported as missing.
    """
    post = session.query(Post).filter(Post.slug == slug, is_active(Post)).first()
    if not post or not can_view_post(post, viewer):
        raise PostNotFound()

    if viewer is None or viewer.id != post.author_id:
        session.execute(
            update(Post.__table__)
            .where(Post.__table__.c.id == post.id)
            .values(views=Post.__table__.c.views + 1)
        )
        session.commit()
        session.refresh(post)
    return post


def get_post_stats(session: Session, post_id: str) -> dict:
    post = get_live_post(session, post_id)
    return {
        "views": post.views,
        "likes": post.likes_count,
        "comments": post.comments_count,
        "read_time": post.read_time,
    }


def list_trending_posts(session: Session, limit: int = 5) -> list[Post]:
    """Published posts from the trending window, most viewed then most liked"""
    since = datetime.now(UTC) - timedelta(days=get_settings().trending_window_days)
    return session.query(Post).filter(
        publicly_visible_post(),
        Post.published_at >= since,
    ).order_by(Post.views.desc(), Post.likes_count.desc(), Post.id).limit(limit).all()


def list_related_posts(session: Session, post_id: str, limit: int = 3) -> list[Post]:
    post = get_live_post(session, post_id)
    return session.query(Post).filter(
        publicly_visible_post(),
        Post.category == post.category,
        Post.id != post.id,
    ).order_by(Post.published_at.desc(), Post.id).limit(limit).all()


def toggle_post_like(session: Session, principal: User, post_id: str) -> tuple[int, bool]:
    post = get_live_post(session, post_id)
    if not accepts_engagement(post):
        raise PostNotPublished("Cannot like unpublished post")
    return counters.toggle_like(session, TargetType.POST, post.id, principal.id)

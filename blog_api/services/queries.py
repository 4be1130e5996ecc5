"""Filters and orderings shared by the post listings."""
from enum import Enum

from sqlalchemy import String, cast, or_

from blog_api.models.post import Post


class PostSort(str, Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    VIEWS = "views"
    LIKES = "likes"
    COMMENTS = "comments"


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def post_search_filter(text: str):
    """Case-insensitive match on title, content or tags."""
    pattern = _like_pattern(text)
    return or_(
        Post.title.ilike(pattern, escape="\\"),
        Post.content.ilike(pattern, escape="\\"),
        cast(Post.tags, String).ilike(pattern, escape="\\"),
    )


def post_ordering(sort: PostSort, date_column=Post.published_at):
    """ORDER BY clauses for ``sort``; ``date_column`` backs newest/oldest."""
    if sort == PostSort.OLDEST:
        primary = date_column.asc()
    elif sort == PostSort.VIEWS:
        primary = Post.views.desc()
    elif sort == PostSort.LIKES:
        primary = Post.likes_count.desc()
    elif sort == PostSort.COMMENTS:
        primary = Post.comments_count.desc()
    else:
        primary = date_column.desc()
    return primary, Post.created_at.desc(), Post.id

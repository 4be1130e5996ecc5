from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from blog_api.core.config import get_settings
from blog_api.core.errors import ValidationFailedError
from blog_api.db.database import get_session
from blog_api.models.like import TargetType
from blog_api.models.post import Post, PostCategory, PostStatus
from blog_api.models.user import User
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.like import LikeToggleResponse
from blog_api.schemas.post import PostCreate, PostUpdate, PostResponse, PostListItem, PostPage, PostStats
from blog_api.core.security import get_current_active_user, get_optional_current_user
from blog_api.services import counters
from blog_api.services import moderation as moderation_service
from blog_api.services import posts as post_service
from blog_api.services.pagination import Page
from blog_api.services.queries import PostSort
from typing import List, Optional

router = APIRouter()
settings = get_settings()

def post_response(session: Session, post: Post, viewer: User | None = None) -> PostResponse:
    """Full post with its like set and whether ``viewer`` is in it"""
    response = PostResponse.model_validate(post)
    return response.model_copy(update={
        "likes": counters.like_user_ids(session, TargetType.POST, post.id),
        "is_liked": viewer is not None and counters.is_liked_by(session, TargetType.POST, post.id, viewer.id),
    })

def post_page(page: Page) -> PostPage:
    return PostPage(
        count=page.count,
        total=page.total,
        total_pages=page.total_pages,
        current_page=page.page,
        posts=[PostListItem.model_validate(post) for post in page.items],
    )

@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, summary="Create a new post")
def create_post(
    post: PostCreate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Create a new post; it waits for moderator approval"""
    new_post = post_service.create_post(
        session,
        current_user,
        title=post.title,
        content=post.content,
        category=post.category,
        excerpt=post.excerpt,
        cover_image=post.cover_image,
        tags=post.tags,
    )
    return post_response(session, new_post, current_user)

@router.get("", response_model=PostPage, summary="List published posts")
def list_posts(
    category: Optional[str] = Query(None, description="Category name, or All"),
    author: Optional[str] = Query(None, description="Author ID"),
    search: Optional[str] = Query(None, description="Text searched in title, content and tags"),
    sort: PostSort = PostSort.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_post_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session)
):
    """List published posts"""
    if category and category != "All":
        try:
            category = PostCategory(category)
        except ValueError:
            raise ValidationFailedError(f"Unknown category: {category}")
    result = post_service.list_published_posts(
        session, category=category, author_id=author, search=search, sort=sort, page=page, limit=limit
    )
    return post_page(result)

@router.get("/mine", response_model=PostPage, summary="List the current user's posts")
def list_my_posts(
    status: Optional[PostStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_post_page_size, ge=1, le=settings.max_page_size),
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """List own posts in every moderation status"""
    return post_page(post_service.list_my_posts(session, current_user, status=status, page=page, limit=limit))

@router.get("/trending", response_model=List[PostListItem], summary="List trending posts")
def list_trending_posts(
    limit: int = Query(5, ge=1, le=50),
    session: Session = Depends(get_session)
):
    """Recently published posts ranked by views and likes"""
    return post_service.list_trending_posts(session, limit=limit)

@router.get("/by-slug/{slug}", response_model=PostResponse, summary="Get a post by slug")
def get_post_by_slug(
    slug: str,
    session: Session = Depends(get_session),
    current_user: User | None = Depends(get_optional_current_user)
):
    """Get a post by slug and count the view"""
    post = post_service.get_post_by_slug(session, slug, viewer=current_user)
    return post_response(session, post, current_user)

@router.get("/{post_id}/stats", response_model=PostStats, summary="Get post statistics")
def get_post_stats(
    post_id: str,
    session: Session = Depends(get_session)
):
    """Get views, likes, comments and read time of a post"""
    return post_service.get_post_stats(session, post_id)

@router.get("/{post_id}/related", response_model=List[PostListItem], summary="List related posts")
def list_related_posts(
    post_id: str,
    limit: int = Query(3, ge=1, le=20),
    session: Session = Depends(get_session)
):
    """Published posts in the same category"""
    return post_service.list_related_posts(session, post_id, limit=limit)

@router.put("/{post_id}", response_model=PostResponse, summary="Update a post")
def update_post(
    post_id: str,
    post_update: PostUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Update a post; changing title or content of a published post sends it back for approval"""
    post = post_service.edit_post(
        session, current_user, post_id, **post_update.model_dump(exclude_unset=True)
    )
    return post_response(session, post, current_user)

@router.delete("/{post_id}", response_model=MessageResponse, summary="Delete a post")
def delete_post(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Soft delete a post; its comments are kept"""
    post_service.soft_delete_post(session, current_user, post_id)
    return {"message": "Post deleted successfully"}

@router.post("/{post_id}:likePost", response_model=LikeToggleResponse, summary="Like or unlike a post")
def toggle_post_like(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Toggle the current user's like on a post"""
    likes_count, is_liked = post_service.toggle_post_like(session, current_user, post_id)
    return {
        "message": "Post liked successfully" if is_liked else "Post unliked successfully",
        "likes_count": likes_count,
        "is_liked": is_liked,
    }

@router.post("/{post_id}:resubmitPost", response_model=PostResponse, summary="Resubmit a rejected post")
def resubmit_post(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Send a rejected post back to the moderation queue"""
    post = moderation_service.resubmit_post(session, current_user, post_id)
    return post_response(session, post, current_user)

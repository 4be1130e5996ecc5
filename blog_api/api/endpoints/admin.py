from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from blog_api.core.config import get_settings
from blog_api.core.security import require_admin
from blog_api.db.database import get_session
from blog_api.models.post import PostStatus
from blog_api.models.user import User, UserRole
from blog_api.schemas.admin import CascadeResponse, DashboardStats, ReconcileResponse
from blog_api.schemas.comment import AdminCommentPage, CommentResponse
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.post import PostPage, PostResponse, RejectRequest
from blog_api.schemas.user import AdminUserPage, AdminUserResponse, RoleUpdate, UserResponse
from blog_api.services import admin as admin_service
from blog_api.services import cascade
from blog_api.services import comments as comment_service
from blog_api.services import counters
from blog_api.services import moderation
from blog_api.services.queries import PostSort
from blog_api.api.endpoints.comments import comment_response
from blog_api.api.endpoints.posts import post_page, post_response

router = APIRouter()
settings = get_settings()

@router.get("/stats", response_model=DashboardStats, summary="Dashboard figures")
def get_dashboard_stats(
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return admin_service.dashboard_stats(session, admin)

@router.get("/posts", response_model=PostPage, summary="List every post")
def list_all_posts(
    status: Optional[PostStatus] = None,
    search: Optional[str] = None,
    sort: PostSort = PostSort.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_admin_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """List non-deleted posts in any moderation status"""
    result = moderation.list_all_posts_admin(
        session, admin, status=status, search=search, sort=sort, page=page, limit=limit
    )
    return post_page(result)

@router.get("/posts/pending", response_model=PostPage, summary="List posts waiting for approval")
def list_pending_posts(
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_admin_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return post_page(moderation.list_pending_posts(session, admin, page=page, limit=limit))

@router.post("/posts/{post_id}:approvePost", response_model=PostResponse, summary="Approve a post")
def approve_post(
    post_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """Publish a pending or rejected post"""
    post = moderation.approve_post(session, admin, post_id)
    return post_response(session, post)

@router.post("/posts/{post_id}:rejectPost", response_model=PostResponse, summary="Reject a post")
def reject_post(
    post_id: str,
    reject: RejectRequest,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """Reject a post with a reason shown to its author"""
    post = moderation.reject_post(session, admin, post_id, reject.reason)
    return post_response(session, post)

@router.delete("/posts/{post_id}", response_model=CascadeResponse, summary="Delete a post and its comments")
def delete_post(
    post_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    report = cascade.admin_delete_post(session, admin, post_id)
    return CascadeResponse(
        message="Post deleted with partial failures" if report.partial else "Post deleted successfully",
        posts_deleted=report.posts_deleted,
        comments_deleted=report.comments_deleted,
        failed=report.failed,
        partial=report.partial,
    )

@router.get("/users", response_model=AdminUserPage, summary="List users")
def list_users(
    search: Optional[str] = None,
    role: Optional[UserRole] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_admin_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """List users with their post counts"""
    result = admin_service.list_users(session, admin, search=search, role=role, page=page, limit=limit)
    users = [
        AdminUserResponse.model_validate(user).model_copy(update={"post_count": post_count})
        for user, post_count in result.items
    ]
    return AdminUserPage(
        count=result.count,
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        users=users,
    )

@router.post("/users/{user_id}:toggleStatus", response_model=UserResponse, summary="Activate or deactivate a user")
def toggle_user_status(
    user_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """Flip the active flag; the user's content is left untouched"""
    return admin_service.toggle_user_status(session, admin, user_id)

@router.put("/users/{user_id}/role", response_model=UserResponse, summary="Change a user's role")
def update_user_role(
    user_id: str,
    role_update: RoleUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    return admin_service.update_user_role(session, admin, user_id, role_update.role)

@router.delete("/users/{user_id}", response_model=CascadeResponse, summary="Deactivate an account and delete its content")
def deactivate_user(
    user_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """Deactivate a user and soft delete their posts and comments"""
    report = cascade.deactivate_account(session, admin, user_id)
    return CascadeResponse(
        message="Account deactivated with partial failures" if report.partial else "Account deactivated successfully",
        posts_deleted=report.posts_deleted,
        comments_deleted=report.comments_deleted,
        failed=report.failed,
        partial=report.partial,
    )

@router.get("/comments", response_model=AdminCommentPage, summary="List every comment")
def list_all_comments(
    post_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_admin_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    result = comment_service.list_all_comments(session, page=page, limit=limit, post_id=post_id)
    return AdminCommentPage(
        count=result.count,
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        comments=[comment_response(session, comment) for comment in result.items],
    )

@router.delete("/comments/{comment_id}", response_model=MessageResponse, summary="Delete a comment")
def delete_comment(
    comment_id: str,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    comment_service.soft_delete_comment(session, admin, comment_id)
    return {"message": "Comment deleted successfully"}

@router.post("/reconcile", response_model=ReconcileResponse, summary="Recompute cached counters")
def reconcile_counters(
    post_id: Optional[str] = None,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin)
):
    """Rewrite likes and comments counters that drifted from the stored documents"""
    return {"corrected": counters.reconcile(session, post_id=post_id)}

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from blog_api.core.config import get_settings
from blog_api.db.database import get_session
from blog_api.models.comment import Comment
from blog_api.models.user import User
from blog_api.schemas.comment import CommentCreate, CommentUpdate, CommentResponse, CommentThreadResponse, CommentPage
from blog_api.schemas.common import MessageResponse
from blog_api.schemas.like import LikeToggleResponse
from blog_api.core.security import get_current_active_user
from blog_api.services import comments as comment_service
from blog_api.services.comments import CommentSort

router = APIRouter()
settings = get_settings()
post_comments_router = APIRouter()

def comment_response(session: Session, comment: Comment) -> CommentResponse:
    response = CommentResponse.model_validate(comment)
    return response.model_copy(update={"reply_ids": comment_service.reply_ids(session, comment.id)})

@post_comments_router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED, summary="Create a comment")
def create_comment(
    post_id: str,
    comment: CommentCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Comment on a published post, or reply to one of its top-level comments"""
    new_comment = comment_service.create_comment(
        session, current_user, post_id, content=comment.content, parent_id=comment.parent_id
    )
    return comment_response(session, new_comment)

@post_comments_router.get("", response_model=CommentPage, summary="List comments of a post")
def list_comments(
    post_id: str,
    sort: CommentSort = CommentSort.NEWEST,
    page: int = Query(1, ge=1),
    limit: int = Query(settings.default_comment_page_size, ge=1, le=settings.max_page_size),
    session: Session = Depends(get_session)
):
    """List top-level comments with their replies"""
    result = comment_service.list_comments(session, post_id, page=page, limit=limit, sort=sort)
    threads = []
    for comment, replies in result.items:
        thread = CommentThreadResponse.model_validate(comment)
        threads.append(thread.model_copy(update={
            "reply_ids": comment_service.reply_ids(session, comment.id),
            "replies": [CommentResponse.model_validate(reply) for reply in replies],
        }))
    return CommentPage(
        count=result.count,
        total=result.total,
        total_pages=result.total_pages,
        current_page=result.page,
        comments=threads,
    )

@router.put("/{comment_id}", response_model=CommentResponse, summary="Update a comment")
def update_comment(
    comment_id: str,
    comment_update: CommentUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Update a comment"""
    comment = comment_service.update_comment(session, current_user, comment_id, comment_update.content)
    return comment_response(session, comment)

@router.delete("/{comment_id}", response_model=MessageResponse, summary="Delete a comment")
def delete_comment(
    comment_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Delete a comment; its replies stay in the thread"""
    comment_service.soft_delete_comment(session, current_user, comment_id)
    return {"message": "Comment deleted successfully"}

@router.post("/{comment_id}:likeComment", response_model=LikeToggleResponse, summary="Like or unlike a comment")
def toggle_comment_like(
    comment_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_active_user)
):
    """Toggle the current user's like on a comment"""
    likes_count, is_liked = comment_service.toggle_comment_like(session, current_user, comment_id)
    return {
        "message": "Comment liked successfully" if is_liked else "Comment unliked successfully",
        "likes_count": likes_count,
        "is_liked": is_liked,
    }

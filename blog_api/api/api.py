from fastapi import APIRouter
from blog_api.api.endpoints import (
    users,
    posts,
    comments,
    admin
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(comments.post_comments_router, prefix="/posts/{post_id}/comments", tags=["comments"])
api_router.include_router(comments.router, prefix="/comments", tags=["comments"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])

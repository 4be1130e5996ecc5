from datetime import datetime
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional
from blog_api.models.lifecycle import EntityState
from blog_api.schemas.common import PageMeta

class CommentBase(BaseModel):
    """Comment base model"""
    content: str = Field(..., min_length=1, max_length=1000, description="Comment content")

    @field_validator("content")
    @classmethod
    def strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Comment content is required")
        return value

class CommentCreate(CommentBase):
    """Create comment request"""
    parent_id: Optional[str] = Field(None, description="Top-level comment this is a reply to")

class CommentUpdate(CommentBase):
    """Update comment request"""
    pass

class CommentResponse(BaseModel):
    """Comment response"""
    id: str = Field(..., description="Comment ID")
    post_id: str = Field(..., description="Post ID")
    author_id: str = Field(..., description="Author ID")
    content: str = Field(..., description="Comment content, a placeholder once deleted")
    parent_id: Optional[str] = Field(None, description="Parent comment ID, null for top-level comments")
    reply_ids: List[str] = Field(default_factory=list, description="Reply IDs in thread order, deleted replies included")
    state: EntityState = Field(..., description="Lifecycle state")
    is_deleted: bool = Field(..., description="Whether the comment was deleted")
    is_edited: bool = Field(..., description="Whether the content changed after creation")
    likes_count: int = Field(default=0, description="Number of likes")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Last update time")

    class Config:
        from_attributes = True

class CommentThreadResponse(CommentResponse):
    """Top-level comment with its visible replies"""
    replies: List[CommentResponse] = Field(default_factory=list, description="Non-deleted replies in thread order")

class CommentPage(PageMeta):
    comments: List[CommentThreadResponse]

class AdminCommentPage(PageMeta):
    comments: List[CommentResponse]

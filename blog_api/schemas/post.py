from pydantic import BaseModel, Field, field_validator
from datetime import datetime
from typing import Optional, List
from blog_api.models.post import PostCategory, PostStatus
from blog_api.schemas.common import PageMeta

def _clean_tags(tags: Optional[List[str]]) -> Optional[List[str]]:
    if tags is None:
        return None
    cleaned = [tag.strip() for tag in tags]
    if any(not tag or len(tag) > 50 for tag in cleaned):
        raise ValueError("Each tag must be between 1 and 50 characters")
    return cleaned

class PostBase(BaseModel):
    """Post fields supplied by the author"""
    title: str = Field(..., min_length=5, max_length=200, description="Post title")
    content: str = Field(..., min_length=50, description="Post body")
    excerpt: Optional[str] = Field(default=None, max_length=300, description="Short summary, derived from the body when omitted")
    cover_image: Optional[str] = Field(default=None, description="Cover image URL")
    category: PostCategory = Field(default=PostCategory.OTHER, description="Post category")
    tags: Optional[List[str]] = Field(default=None, max_length=20, description="Free-form tags")

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)

class PostCreate(PostBase):
    """Create post request"""
    pass

class PostUpdate(BaseModel):
    """Update post request; omitted fields are left unchanged"""
    title: Optional[str] = Field(default=None, min_length=5, max_length=200)
    content: Optional[str] = Field(default=None, min_length=50)
    excerpt: Optional[str] = Field(default=None, max_length=300)
    cover_image: Optional[str] = None
    category: Optional[PostCategory] = None
    tags: Optional[List[str]] = Field(default=None, max_length=20)

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value is not None else value

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        return _clean_tags(value)

class RejectRequest(BaseModel):
    """Reject post request"""
    reason: str = Field(..., description="Why the post was rejected")

class PostListItem(BaseModel):
    """Post as shown in listings, without the body"""
    id: str
    author_id: str
    title: str
    slug: str
    excerpt: str
    cover_image: str
    category: PostCategory
    tags: List[str]
    status: PostStatus
    published_at: Optional[datetime] = None
    rejection_reason: str
    views: int
    likes_count: int
    comments_count: int
    read_time: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True

class PostResponse(PostListItem):
    """Full post"""
    content: str
    is_deleted: bool = False
    likes: List[str] = Field(default_factory=list, description="Ids of users who liked the post")
    is_liked: bool = Field(default=False, description="Whether the requesting user likes the post")

class PostPage(PageMeta):
    posts: List[PostListItem]

class PostStats(BaseModel):
    views: int
    likes: int
    comments: int
    read_time: int

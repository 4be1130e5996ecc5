from typing import List
from pydantic import BaseModel, Field
from blog_api.models.post import PostCategory
from blog_api.schemas.post import PostListItem

class CascadeResponse(BaseModel):
    """Outcome of a cascading delete; ``partial`` is true when some documents were not cascaded"""
    message: str
    posts_deleted: List[str] = Field(default_factory=list)
    comments_deleted: List[str] = Field(default_factory=list)
    failed: List[str] = Field(default_factory=list)
    partial: bool = False

class ReconcileResponse(BaseModel):
    corrected: int = Field(..., description="Posts and comments whose cached counters were rewritten")

class UserStats(BaseModel):
    total: int

class PostCounts(BaseModel):
    total: int
    published: int
    pending: int
    rejected: int

class EngagementStats(BaseModel):
    total_views: int
    total_likes: int
    total_comments: int

class AuthorStat(BaseModel):
    id: str
    username: str
    full_name: str
    count: int

class CategoryStat(BaseModel):
    category: PostCategory
    count: int

class DashboardStats(BaseModel):
    users: UserStats
    posts: PostCounts
    engagement: EngagementStats
    recent_posts: List[PostListItem]
    top_authors: List[AuthorStat]
    category_stats: List[CategoryStat]

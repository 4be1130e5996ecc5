from sqlalchemy import Column, String, Text, Enum, DateTime, Integer, JSON, Index
from sqlalchemy.ext.hybrid import hybrid_property
from blog_api.db.database import Base
from blog_api.models.lifecycle import EntityState
from datetime import datetime, UTC
from enum import Enum as PyEnum
import uuid

class PostStatus(str, PyEnum):
    """Moderation status"""
    PENDING = "pending"      # Waiting for a moderator, visible to author and moderators
    PUBLISHED = "published"  # Visible to everyone, accepts comments and likes
    REJECTED = "rejected"    # Refused by a moderator, carries a rejection reason

class PostCategory(str, PyEnum):
    TECHNOLOGY = "Technology"
    LIFESTYLE = "Lifestyle"
    TRAVEL = "Travel"
    FOOD = "Food"
    HEALTH = "Health"
    BUSINESS = "Business"
    ENTERTAINMENT = "Entertainment"
    EDUCATION = "Education"
    SPORTS = "Sports"
    OTHER = "Other"

class Post(Base):
    """Post model"""
    __tablename__ = "posts"
    __table_args__ = (
        Index("ix_posts_author_status", "author_id", "status"),
        Index("ix_posts_status_published_at", "status", "published_at"),
        Index("ix_posts_category_status", "category", "status"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id = Column(String, nullable=False)
    title = Column(String(200), nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    content = Column(Text, nullable=False)
    excerpt = Column(String(300), nullable=False, default="")
    cover_image = Column(String, nullable=False, default="")
    category = Column(Enum(PostCategory), nullable=False, default=PostCategory.OTHER)
    tags = Column(JSON, nullable=False, default=list)
    status = Column(Enum(PostStatus), nullable=False, default=PostStatus.PENDING)
    published_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(String, nullable=False, default="")
    views = Column(Integer, nullable=False, default=0)
    likes_count = Column(Integer, nullable=False, default=0)
    comments_count = Column(Integer, nullable=False, default=0)
    read_time = Column(Integer, nullable=False, default=0)
    state = Column(Enum(EntityState), nullable=False, default=EntityState.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

    @hybrid_property
    def is_deleted(self):
        return self.state == EntityState.DELETED

from datetime import datetime, UTC
import uuid
import enum
from sqlalchemy import Column, String, Enum as SQLEnum, DateTime, UniqueConstraint

from blog_api.db.database import Base

class TargetType(str, enum.Enum):
    """Like target type"""
    POST = "post"
    COMMENT = "comment"

class Like(Base):
    """One principal's like on a post or comment.

    The rows for a target are the like set; the unique constraint makes
    membership a storage-level fact rather than an application check.
    """
    __tablename__ = "likes"
    __table_args__ = (
        UniqueConstraint("target_type", "target_id", "user_id", name="uq_likes_target_user"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, nullable=False, index=True)
    target_id = Column(String, nullable=False)
    target_type = Column(SQLEnum(TargetType), nullable=False)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(UTC))

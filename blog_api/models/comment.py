from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, Index, Integer, String, Text
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column
from blog_api.db.database import Base
from blog_api.models.lifecycle import EntityState
import uuid

DELETED_PLACEHOLDER = "[deleted]"
ADMIN_DELETED_PLACEHOLDER = "[deleted by admin]"

TOP_LEVEL_DEPTH = 0
REPLY_DEPTH = 1

class Comment(Base):
    """Comment model.

    Threads are two-tier: a top-level comment (depth 0) owns an ordered
    list of replies (depth 1), and a reply never owns replies itself.
    """
    __tablename__ = "comments"
    __table_args__ = (
        CheckConstraint("depth IN (0, 1)", name="ck_comments_depth"),
        CheckConstraint(
            "(parent_id IS NULL AND depth = 0) OR (parent_id IS NOT NULL AND depth = 1)",
            name="ck_comments_parent_depth",
        ),
        Index("ix_comments_post_created", "post_id", "created_at"),
        Index("ix_comments_parent_seq", "parent_id", "reply_seq"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id: Mapped[str] = mapped_column(String(36))  # Not using foreign key, only storing ID
    author_id: Mapped[str] = mapped_column(String(36), index=True)  # Not using foreign key, only storing ID
    content: Mapped[str] = mapped_column(Text)
    parent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, default=None)
    depth: Mapped[int] = mapped_column(Integer, default=TOP_LEVEL_DEPTH, nullable=False)
    reply_seq: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # position in the parent's reply list
    reply_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)  # replies ever appended, tombstones included
    likes_count: Mapped[int] = mapped_column(Integer, default=0)
    is_edited: Mapped[bool] = mapped_column(Boolean, default=False)
    state: Mapped[EntityState] = mapped_column(
        Enum(EntityState),
        default=EntityState.ACTIVE,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )

    @hybrid_property
    def is_deleted(self):
        return self.state == EntityState.DELETED

    @property
    def is_reply(self) -> bool:
        return self.parent_id is not None

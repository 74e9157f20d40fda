from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import DateTime, Integer, String, Text, Enum
from sqlalchemy.orm import Mapped, mapped_column
from campusnet.db.database import Base
import uuid
import enum

class CommentStatus(str, enum.Enum):
    """Comment status"""
    ACTIVE = "ACTIVE"  # Visible to everyone
    DELETED = "DELETED"  # Soft deleted, kept so its replies stay readable

class Comment(Base):
    """Comment model, a reply when parent_id is set"""
    __tablename__ = "comments"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    post_id: Mapped[str] = mapped_column(String(36), index=True)  # Not using foreign key, only storing ID
    author_id: Mapped[str] = mapped_column(String(36))
    parent_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    content: Mapped[str] = mapped_column(Text)
    status: Mapped[CommentStatus] = mapped_column(
        Enum(CommentStatus),
        default=CommentStatus.ACTIVE,
        nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )
    like_count: Mapped[int] = mapped_column(Integer, default=0)

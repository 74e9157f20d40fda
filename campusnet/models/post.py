from sqlalchemy import Column, String, Enum, DateTime, Integer, Text, Boolean
from campusnet.db.database import Base
from datetime import datetime, UTC
from enum import Enum as PyEnum
import uuid

class PostStatus(str, PyEnum):
    """Post status"""
    ACTIVE = "ACTIVE"  # Visible to everyone, can be liked and commented
    HIDDEN = "HIDDEN"  # Only visible to the author

class Post(Base):
    """Post model"""
    __tablename__ = "posts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id = Column(String(36), nullable=False, index=True)
    content = Column(Text, nullable=False)
    is_bot = Column(Boolean, nullable=False, default=False)  # relayed from the group chat bot
    status = Column(Enum(PostStatus), nullable=False, default=PostStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))
    like_count = Column(Integer, nullable=False, default=0)
    comment_count = Column(Integer, nullable=False, default=0)

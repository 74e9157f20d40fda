from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import Boolean, DateTime, Integer, String, Text, Enum, JSON
from sqlalchemy.orm import Mapped, mapped_column
from campusnet.db.database import Base
import uuid
import enum

class QuestionStatus(str, enum.Enum):
    """Question status"""
    OPEN = "OPEN"  # Accepting answers
    CLOSED = "CLOSED"  # No new answers, still votable

class Question(Base):
    """Question model"""
    __tablename__ = "questions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    author_id: Mapped[str] = mapped_column(String(36), index=True)
    title: Mapped[str] = mapped_column(String(200))
    content: Mapped[str] = mapped_column(Text)
    subject: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)  # course / topic
    tags: Mapped[list] = mapped_column(JSON, default=list)
    is_anonymous: Mapped[bool] = mapped_column(Boolean, default=False)
    status: Mapped[QuestionStatus] = mapped_column(
        Enum(QuestionStatus),
        default=QuestionStatus.OPEN,
        nullable=False
    )
    is_solved: Mapped[bool] = mapped_column(Boolean, default=False)
    accepted_answer_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    answer_count: Mapped[int] = mapped_column(Integer, default=0)
    upvotes: Mapped[int] = mapped_column(Integer, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, default=0)
    vote_score: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC)
    )

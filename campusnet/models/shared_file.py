from datetime import datetime, UTC
from typing import Optional
from sqlalchemy import Boolean, DateTime, Integer, String, Text, Enum
from sqlalchemy.orm import Mapped, mapped_column
from campusnet.db.database import Base
import uuid
import enum

class FileCategory(str, enum.Enum):
    """File category"""
    DOCUMENT = "document"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    ARCHIVE = "archive"
    OTHER = "other"

class SharedFile(Base):
    """Metadata of a shared study file; the bytes live in external storage"""
    __tablename__ = "files"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    uploader_id: Mapped[str] = mapped_column(String(36), index=True)
    filename: Mapped[str] = mapped_column(String(255), unique=True)  # storage key
    original_name: Mapped[str] = mapped_column(String(255))
    mime_type: Mapped[str] = mapped_column(String(100))
    size: Mapped[int] = mapped_column(Integer)
    file_path: Mapped[str] = mapped_column(String)
    subject: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[FileCategory] = mapped_column(Enum(FileCategory), default=FileCategory.OTHER)
    is_public: Mapped[bool] = mapped_column(Boolean, default=True)
    download_count: Mapped[int] = mapped_column(Integer, default=0)
    upvotes: Mapped[int] = mapped_column(Integer, default=0)
    downvotes: Mapped[int] = mapped_column(Integer, default=0)
    vote_score: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

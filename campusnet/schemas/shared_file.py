from datetime import datetime
from pydantic import BaseModel, Field
from typing import Optional
from campusnet.models.shared_file import FileCategory

class FileCreate(BaseModel):
    """Register an uploaded file"""
    filename: str = Field(..., min_length=1, max_length=255, description="Storage key")
    original_name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field(..., min_length=1, max_length=100)
    size: int = Field(..., ge=0)
    file_path: str = Field(..., min_length=1)
    subject: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: FileCategory = FileCategory.OTHER
    is_public: bool = True

class FileResponse(BaseModel):
    """File metadata response"""
    id: str
    uploader_id: str
    filename: str
    original_name: str
    mime_type: str
    size: int
    file_path: str
    subject: Optional[str]
    description: Optional[str]
    category: FileCategory
    is_public: bool
    download_count: int
    upvotes: int
    downvotes: int
    vote_score: int
    created_at: datetime

    class Config:
        from_attributes = True

class FileUpdate(BaseModel):
    """Update file metadata"""
    subject: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    category: Optional[FileCategory] = None
    is_public: Optional[bool] = None

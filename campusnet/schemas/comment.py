from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional
from campusnet.models.comment import CommentStatus

class CommentBase(BaseModel):
    """Comment base model"""
    content: str = Field(..., min_length=1, max_length=1000, description="Comment content")

class CommentCreate(CommentBase):
    """Create comment request, a reply when parent_id is set"""
    parent_id: Optional[str] = Field(None, description="Parent comment ID")

class CommentUpdate(BaseModel):
    """Update comment request"""
    content: str = Field(..., min_length=1, max_length=1000, description="Comment content")

class CommentResponse(BaseModel):
    """Comment response"""
    id: str = Field(..., description="Comment ID")
    post_id: str = Field(..., description="Post ID")
    author_id: str = Field(..., description="Author ID")
    parent_id: Optional[str] = Field(None, description="Parent comment ID")
    content: str = Field(..., description="Comment content")
    status: CommentStatus = Field(..., description="Comment status")
    created_at: datetime = Field(..., description="Creation time")
    updated_at: datetime = Field(..., description="Update time")
    like_count: int = Field(default=0, description="Like count")

    class Config:
        from_attributes = True

class CommentThreadNode(CommentResponse):
    """Comment with its replies"""
    parent_deleted: bool = Field(default=False, description="Parent comment was deleted")
    replies: List["CommentThreadNode"] = Field(default_factory=list, description="Replies")

CommentThreadNode.model_rebuild()

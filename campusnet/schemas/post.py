from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from campusnet.models.post import PostStatus

class PostBase(BaseModel):
    """Post base model"""
    content: str = Field(..., min_length=1, max_length=5000)

class PostCreate(PostBase):
    """Create post request"""
    pass

class PostUpdate(BaseModel):
    """Update post request"""
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    status: Optional[PostStatus] = None

class PostResponse(PostBase):
    """Post response"""
    id: str
    author_id: str
    is_bot: bool
    status: PostStatus
    created_at: datetime
    updated_at: datetime
    like_count: int
    comment_count: int
    is_liked: bool = False

    class Config:
        from_attributes = True

class BotPostCreate(PostBase):
    """Post relayed by the group chat bot"""
    bot_token: str = Field(..., min_length=1)

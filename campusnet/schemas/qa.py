from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional
from campusnet.models.question import QuestionStatus

class QuestionCreate(BaseModel):
    """Create question request"""
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    subject: Optional[str] = Field(default=None, max_length=100)
    tags: List[str] = Field(default_factory=list)
    is_anonymous: bool = False

class QuestionUpdate(BaseModel):
    """Update question request"""
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1, max_length=5000)
    subject: Optional[str] = Field(default=None, max_length=100)
    tags: Optional[List[str]] = None
    status: Optional[QuestionStatus] = None

class QuestionResponse(BaseModel):
    """Question response"""
    id: str
    author_id: Optional[str]  # hidden for anonymous questions
    title: str
    content: str
    subject: Optional[str]
    tags: List[str]
    is_anonymous: bool
    status: QuestionStatus
    is_solved: bool
    accepted_answer_id: Optional[str]
    view_count: int
    answer_count: int
    upvotes: int
    downvotes: int
    vote_score: int
    created_at: datetime
    updated_at: datetime
    my_vote: Optional[str] = None

    class Config:
        from_attributes = True

class AnswerCreate(BaseModel):
    """Create answer request"""
    content: str = Field(..., min_length=1, max_length=5000)
    is_anonymous: bool = False

class AnswerResponse(BaseModel):
    """Answer response"""
    id: str
    question_id: str
    author_id: Optional[str]
    content: str
    is_anonymous: bool
    is_accepted: bool
    upvotes: int
    downvotes: int
    vote_score: int
    created_at: datetime
    my_vote: Optional[str] = None

    class Config:
        from_attributes = True

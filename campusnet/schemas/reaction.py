from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, Field

from campusnet.models.reaction import ReactionKind, SubjectType

class ReactionCreate(BaseModel):
    """Reaction request; repeating the same kind removes the reaction"""
    kind: ReactionKind = Field(..., description="like, up or down")

class ReactionResponse(BaseModel):
    """Reaction result"""
    subject_type: SubjectType = Field(..., description="Subject type")
    subject_id: str = Field(..., description="Subject ID")
    aggregate: Dict[str, int] = Field(..., description="Aggregate counters after the reaction")
    effective_kind: Optional[ReactionKind] = Field(None, description="Reaction now in effect, null when removed")

class MyReactionResponse(BaseModel):
    """The caller's current reaction"""
    kind: Optional[ReactionKind] = None

class ReactorResponse(BaseModel):
    """One ledger row with the reacting user"""
    actor_id: str
    username: str
    name: Optional[str] = None
    kind: ReactionKind
    created_at: datetime

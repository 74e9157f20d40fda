from datetime import datetime, UTC
import uuid
import enum
from sqlalchemy import Column, String, Enum as SQLEnum, DateTime, UniqueConstraint, Index

from campusnet.db.database import Base

class ReactionKind(str, enum.Enum):
    """Reaction kind"""
    LIKE = "like"
    UP = "up"
    DOWN = "down"

class SubjectType(str, enum.Enum):
    """Entity types that can receive reactions"""
    POST = "post"
    COMMENT = "comment"
    QUESTION = "question"
    ANSWER = "answer"
    FILE = "file"

class KindSet(str, enum.Enum):
    """Allowed reaction kinds of a subject type"""
    BINARY = "binary"  # like / unlike
    UP_DOWN = "up_down"  # directional votes

ALLOWED_KINDS = {
    KindSet.BINARY: frozenset({ReactionKind.LIKE}),
    KindSet.UP_DOWN: frozenset({ReactionKind.UP, ReactionKind.DOWN}),
}

SUBJECT_KIND_SETS = {
    SubjectType.POST: KindSet.BINARY,
    SubjectType.COMMENT: KindSet.BINARY,
    SubjectType.QUESTION: KindSet.UP_DOWN,
    SubjectType.ANSWER: KindSet.UP_DOWN,
    SubjectType.FILE: KindSet.UP_DOWN,
}

class Reaction(Base):
    """Ledger row: one actor's current reaction to one subject"""
    __tablename__ = "reactions"
    __table_args__ = (
        UniqueConstraint("subject_type", "subject_id", "actor_id", name="uq_reaction_subject_actor"),
        Index("ix_reactions_subject", "subject_type", "subject_id"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    subject_type = Column(SQLEnum(SubjectType), nullable=False)
    subject_id = Column(String(36), nullable=False)
    actor_id = Column(String(36), nullable=False)
    kind = Column(SQLEnum(ReactionKind), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC))

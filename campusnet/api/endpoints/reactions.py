from typing import Annotated
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campusnet.api.deps import get_notifier
from campusnet.core.security import get_current_user
from campusnet.db.database import get_session
from campusnet.models.reaction import SubjectType
from campusnet.models.user import User
from campusnet.schemas.reaction import ReactionCreate, ReactionResponse, MyReactionResponse
from campusnet.services.notifications import NotificationEmitter
from campusnet.services.reaction_ledger import ReactionLedger, apply_with_retry

router = APIRouter()

@router.post("/{subject_type}/{subject_id}", response_model=ReactionResponse, summary="React to a post, comment, question, answer or file")
def create_reaction(
    subject_type: SubjectType,
    subject_id: str,
    reaction_in: ReactionCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[Session, Depends(get_session)],
    notifier: Annotated[NotificationEmitter, Depends(get_notifier)]
):
    """Apply a reaction; repeating the same kind removes it, another kind switches it"""
    result = apply_with_retry(
        ReactionLedger(session, notifier),
        subject_type,
        subject_id,
        current_user.id,
        reaction_in.kind
    )
    return ReactionResponse(
        subject_type=result.subject_type,
        subject_id=result.subject_id,
        aggregate=result.aggregate,
        effective_kind=result.effective_kind
    )

@router.get("/{subject_type}/{subject_id}/me", response_model=MyReactionResponse, summary="Get the caller's reaction")
def get_my_reaction(
    subject_type: SubjectType,
    subject_id: str,
    current_user: Annotated[User, Depends(get_current_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Get the caller's current reaction on a subject"""
    ledger = ReactionLedger(session)
    ledger.subjects.get(subject_type, subject_id, viewer_id=current_user.id)
    return MyReactionResponse(kind=ledger.get_reaction(subject_type, subject_id, current_user.id))

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session
from campusnet.api.deps import get_notifier
from campusnet.db.database import get_session
from campusnet.models.answer import Answer
from campusnet.models.question import Question, QuestionStatus
from campusnet.models.reaction import SubjectType
from campusnet.models.user import User
from campusnet.schemas.qa import QuestionCreate, QuestionUpdate, QuestionResponse, AnswerCreate, AnswerResponse
from campusnet.core.security import get_current_active_user, get_optional_current_user
from campusnet.services.notifications import NotificationEmitter
from campusnet.services.reaction_ledger import ReactionLedger
from campusnet.services.subject_store import SubjectStore
from typing import List, Optional

router = APIRouter()

def _get_question(session: Session, question_id: str) -> Question:
    question = session.get(Question, question_id)
    if not question:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Question not found"
        )
    return question

def _get_answer(session: Session, question_id: str, answer_id: str) -> Answer:
    answer = session.get(Answer, answer_id)
    if not answer or answer.question_id != question_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Answer not found"
        )
    return answer

def _question_response(session: Session, question: Question, viewer: Optional[User]) -> QuestionResponse:
    response = QuestionResponse.model_validate(question)
    is_author = viewer is not None and viewer.id == question.author_id
    if question.is_anonymous and not is_author:
        response.author_id = None
    if viewer is not None:
        kind = ReactionLedger(session).get_reaction(SubjectType.QUESTION, question.id, viewer.id)
        response.my_vote = kind.value if kind else None
    return response

def _answer_response(session: Session, answer: Answer, viewer: Optional[User]) -> AnswerResponse:
    response = AnswerResponse.model_validate(answer)
    is_author = viewer is not None and viewer.id == answer.author_id
    if answer.is_anonymous and not is_author:
        response.author_id = None
    if viewer is not None:
        kind = ReactionLedger(session).get_reaction(SubjectType.ANSWER, answer.id, viewer.id)
        response.my_vote = kind.value if kind else None
    return response

@router.post("", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED, summary="Ask a question")
def create_question(
    question_in: QuestionCreate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Ask a question"""
    question = Question(
        author_id=current_user.id,
        title=question_in.title,
        content=question_in.content,
        subject=question_in.subject,
        tags=question_in.tags,
        is_anonymous=question_in.is_anonymous
    )
    session.add(question)
    session.commit()
    session.refresh(question)
    return _question_response(session, question, current_user)

@router.get("", response_model=List[QuestionResponse], summary="List questions, newest first")
def list_questions(
    subject: Optional[str] = None,
    solved: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """List questions"""
    query = select(Question)
    if subject:
        query = query.where(Question.subject == subject)
    if solved is not None:
        query = query.where(Question.is_solved == solved)
    questions = session.scalars(
        query.order_by(Question.created_at.desc()).offset(offset).limit(limit)
    ).all()
    return [_question_response(session, question, current_user) for question in questions]

@router.get("/{question_id}", response_model=QuestionResponse, summary="Get a question")
def get_question(
    question_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Get a question and count the view"""
    _get_question(session, question_id)
    session.execute(
        update(Question).where(Question.id == question_id).values(view_count=Question.view_count + 1),
        execution_options={"synchronize_session": "fetch"}
    )
    session.commit()
    return _question_response(session, _get_question(session, question_id), current_user)

@router.put("/{question_id}", response_model=QuestionResponse, summary="Update a question")
def update_question(
    question_id: str,
    question_update: QuestionUpdate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Update a question"""
    question = _get_question(session, question_id)
    if question.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to update this question"
        )
    for field in ("title", "content", "subject", "tags", "status"):
        value = getattr(question_update, field)
        if value is not None:
            setattr(question, field, value)
    session.commit()
    session.refresh(question)
    return _question_response(session, question, current_user)

@router.delete("/{question_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a question with its answers and votes")
def delete_question(
    question_id: str,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Delete a question, its answers and every vote on them"""
    question = _get_question(session, question_id)
    if question.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this question"
        )
    SubjectStore(session).delete(SubjectType.QUESTION, question_id)

@router.post("/{question_id}/answers", response_model=AnswerResponse, status_code=status.HTTP_201_CREATED, summary="Answer a question")
def create_answer(
    question_id: str,
    answer_in: AnswerCreate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session),
    notifier: NotificationEmitter = Depends(get_notifier)
):
    """Answer an open question"""
    question = _get_question(session, question_id)
    if question.status != QuestionStatus.OPEN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only answer open questions"
        )

    answer = Answer(
        question_id=question_id,
        author_id=current_user.id,
        content=answer_in.content,
        is_anonymous=answer_in.is_anonymous
    )
    session.add(answer)
    session.execute(
        update(Question).where(Question.id == question_id).values(answer_count=Question.answer_count + 1),
        execution_options={"synchronize_session": "fetch"}
    )
    session.commit()
    session.refresh(answer)

    notifier.notify(question.author_id, "answer", {
        "actor": "Someone" if answer.is_anonymous else current_user.display_name,
        "actor_id": current_user.id,
        "question_id": question_id,
    })
    return _answer_response(session, answer, current_user)

@router.get("/{question_id}/answers", response_model=List[AnswerResponse], summary="List answers of a question")
def list_answers(
    question_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """List answers, accepted first, then by score"""
    _get_question(session, question_id)
    answers = session.scalars(
        select(Answer).where(Answer.question_id == question_id).order_by(
            Answer.is_accepted.desc(), Answer.vote_score.desc(), Answer.created_at
        )
    ).all()
    return [_answer_response(session, answer, current_user) for answer in answers]

@router.post("/{question_id}/answers/{answer_id}/accept", response_model=AnswerResponse, summary="Accept an answer")
def accept_answer(
    question_id: str,
    answer_id: str,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session),
    notifier: NotificationEmitter = Depends(get_notifier)
):
    """Mark an answer as the accepted one; only the question author may do this"""
    question = _get_question(session, question_id)
    if question.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the question author can accept answers"
        )
    answer = _get_answer(session, question_id, answer_id)

    try:
        session.execute(
            update(Answer).where(Answer.question_id == question_id).values(is_accepted=False),
            execution_options={"synchronize_session": "fetch"}
        )
        answer.is_accepted = True
        question.is_solved = True
        question.accepted_answer_id = answer_id
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(answer)

    notifier.notify(answer.author_id, "accepted", {
        "actor": current_user.display_name,
        "actor_id": current_user.id,
        "question_id": question_id,
    })
    return _answer_response(session, answer, current_user)

@router.delete("/{question_id}/answers/{answer_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete an answer")
def delete_answer(
    question_id: str,
    answer_id: str,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Delete an answer and its votes"""
    question = _get_question(session, question_id)
    answer = _get_answer(session, question_id, answer_id)
    if answer.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this answer"
        )

    # committed together with the answer deletion
    question.answer_count = Question.answer_count - 1
    if question.accepted_answer_id == answer_id:
        question.accepted_answer_id = None
        question.is_solved = False
    SubjectStore(session).delete(SubjectType.ANSWER, answer_id)

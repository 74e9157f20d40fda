"""Owner of reaction subjects and their denormalized aggregate counters."""
import logging

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from campusnet.core.errors import NotFound
from campusnet.models.answer import Answer
from campusnet.models.comment import Comment, CommentStatus
from campusnet.models.post import Post, PostStatus
from campusnet.models.question import Question
from campusnet.models.reaction import KindSet, Reaction, SubjectType, SUBJECT_KIND_SETS
from campusnet.models.shared_file import SharedFile

logger = logging.getLogger(__name__)

SUBJECT_MODELS = {
    SubjectType.POST: Post,
    SubjectType.COMMENT: Comment,
    SubjectType.QUESTION: Question,
    SubjectType.ANSWER: Answer,
    SubjectType.FILE: SharedFile,
}

AGGREGATE_FIELDS = {
    KindSet.BINARY: ("like_count",),
    KindSet.UP_DOWN: ("upvotes", "downvotes", "vote_score"),
}

# Subjects outside these statuses are treated as missing
LIVE_STATUSES = {
    SubjectType.POST: {PostStatus.ACTIVE},
    SubjectType.COMMENT: {CommentStatus.ACTIVE},
}


def aggregate_fields(subject_type: SubjectType) -> tuple[str, ...]:
    return AGGREGATE_FIELDS[SUBJECT_KIND_SETS[subject_type]]


def owner_id(subject) -> str | None:
    """Identifier of the user owning a subject"""
    if isinstance(subject, SharedFile):
        return subject.uploader_id
    return subject.author_id


class SubjectStore:
    """Reads subjects and mutates their aggregate counters.

    apply_aggregate_delta is only meant to be called by ReactionLedger,
    inside the transaction that writes the matching ledger row.
    """

    def __init__(self, session: Session):
        self.session = session

    def get(self, subject_type: SubjectType, subject_id: str, viewer_id: str | None = None):
        """Load a live subject visible to viewer_id or raise NotFound.

        Private files are only visible to their uploader, comments only while
        their post is live.
        """
        model = SUBJECT_MODELS[subject_type]
        subject = self.session.get(model, subject_id)
        if subject is None or not self._visible(subject_type, subject, viewer_id):
            raise NotFound(f"{subject_type.value.capitalize()} not found")
        return subject

    def _visible(self, subject_type: SubjectType, subject, viewer_id: str | None) -> bool:
        live = LIVE_STATUSES.get(subject_type)
        if live is not None and subject.status not in live:
            return False
        if subject_type == SubjectType.FILE:
            return subject.is_public or subject.uploader_id == viewer_id
        if subject_type == SubjectType.COMMENT:
            post = self.session.get(Post, subject.post_id)
            return post is not None and post.status in LIVE_STATUSES[SubjectType.POST]
        return True

    def get_aggregate(self, subject_type: SubjectType, subject_id: str) -> dict[str, int]:
        """Current aggregate counts, read from the database"""
        model = SUBJECT_MODELS[subject_type]
        fields = aggregate_fields(subject_type)
        row = self.session.execute(
            select(*(getattr(model, name) for name in fields)).where(model.id == subject_id)
        ).first()
        if row is None:
            raise NotFound(f"{subject_type.value.capitalize()} not found")
        return dict(zip(fields, row))

    def apply_aggregate_delta(self, subject_type: SubjectType, subject_id: str, delta: dict[str, int]) -> dict[str, int]:
        """Atomically add delta to the subject's counters and return the new counts.

        Issues a single ``UPDATE ... SET col = col + :n`` so that concurrent
        reactions from different actors never lose an update.
        """
        model = SUBJECT_MODELS[subject_type]
        fields = aggregate_fields(subject_type)
        unknown = set(delta) - set(fields)
        if unknown:
            raise ValueError(f"{sorted(unknown)} are not aggregate fields of {subject_type.value}")

        values = {name: getattr(model, name) + amount for name, amount in delta.items() if amount}
        if values:
            self.session.execute(
                update(model).where(model.id == subject_id).values(**values),
                execution_options={"synchronize_session": "fetch"},
            )
        return self.get_aggregate(subject_type, subject_id)

    def delete(self, subject_type: SubjectType, subject_id: str) -> None:
        """Delete a subject and every ledger row referencing it, in one transaction.

        Posts take their comments (and the comments' ledger rows) with them,
        questions take their answers.
        """
        model = SUBJECT_MODELS[subject_type]
        subject = self.session.get(model, subject_id)
        if subject is None:
            raise NotFound(f"{subject_type.value.capitalize()} not found")

        try:
            if subject_type == SubjectType.POST:
                self._delete_children(Comment, Comment.post_id, subject_id, SubjectType.COMMENT)
            elif subject_type == SubjectType.QUESTION:
                self._delete_children(Answer, Answer.question_id, subject_id, SubjectType.ANSWER)
            self._purge_reactions(subject_type, [subject_id])
            self.session.delete(subject)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("Deleted %s %s with its reactions", subject_type.value, subject_id)

    def _delete_children(self, model, parent_column, parent_id: str, child_type: SubjectType) -> None:
        child_ids = self.session.scalars(select(model.id).where(parent_column == parent_id)).all()
        if child_ids:
            self._purge_reactions(child_type, child_ids)
            self.session.execute(
                delete(model).where(model.id.in_(child_ids)),
                execution_options={"synchronize_session": False},
            )

    def _purge_reactions(self, subject_type: SubjectType, subject_ids: list[str]) -> None:
        self.session.execute(
            delete(Reaction).where(
                Reaction.subject_type == subject_type,
                Reaction.subject_id.in_(subject_ids),
            ),
            execution_options={"synchronize_session": False},
        )

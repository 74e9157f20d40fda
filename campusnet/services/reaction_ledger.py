"""Reaction ledger: likes and up/down votes on any subject.

One ledger row per (subject, actor). Applying a reaction inserts a row,
toggles it off when the same kind is repeated, or switches its kind, and
adjusts the subject's aggregate counters in the same transaction.
"""
import logging
import time
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from campusnet.core import config
from campusnet.core.errors import ConflictRetry, InvalidKind, NotFound, Unauthorized
from campusnet.models.reaction import (
    ALLOWED_KINDS,
    SUBJECT_KIND_SETS,
    KindSet,
    Reaction,
    ReactionKind,
    SubjectType,
)
from campusnet.models.user import User
from campusnet.services.notifications import NotificationEmitter
from campusnet.services.subject_store import SubjectStore, owner_id

logger = logging.getLogger(__name__)

# postgres: serialization_failure, deadlock_detected
SERIALIZATION_SQLSTATES = {"40001", "40P01"}


@dataclass
class ReactionResult:
    subject_type: SubjectType
    subject_id: str
    aggregate: dict[str, int] = field(default_factory=dict)
    effective_kind: ReactionKind | None = None


def kind_delta(kind_set: KindSet, kind: ReactionKind, sign: int) -> dict[str, int]:
    """Counter changes for adding (sign=1) or removing (sign=-1) one reaction"""
    if kind_set == KindSet.BINARY:
        return {"like_count": sign}
    if kind == ReactionKind.UP:
        return {"upvotes": sign, "vote_score": sign}
    return {"downvotes": sign, "vote_score": -sign}


def merge_deltas(*deltas: dict[str, int]) -> dict[str, int]:
    merged: dict[str, int] = {}
    for delta in deltas:
        for name, amount in delta.items():
            merged[name] = merged.get(name, 0) + amount
    return merged


def is_serialization_failure(exc: OperationalError) -> bool:
    """True when the database refused to serialize concurrent writers"""
    if getattr(exc.orig, "pgcode", None) in SERIALIZATION_SQLSTATES:
        return True
    return "database is locked" in str(exc.orig)


class ReactionLedger:
    """Applies reactions and keeps subject counters consistent with the ledger"""

    def __init__(self, session: Session, notifier: NotificationEmitter | None = None):
        self.session = session
        self.subjects = SubjectStore(session)
        self.notifier = notifier

    def apply(self, subject_type, subject_id: str, actor_id: str, kind) -> ReactionResult:
        subject_type = self._subject_type(subject_type)
        kind_set = SUBJECT_KIND_SETS[subject_type]
        kind = self._check_kind(kind_set, kind)

        created = False
        try:
            actor = self._get_actor(actor_id)
            subject = self.subjects.get(subject_type, subject_id, viewer_id=actor_id)

            existing = self.session.execute(
                select(Reaction).where(
                    Reaction.subject_type == subject_type,
                    Reaction.subject_id == subject_id,
                    Reaction.actor_id == actor_id,
                ).with_for_update()
            ).scalar_one_or_none()

            if existing is None:
                self.session.add(Reaction(
                    subject_type=subject_type,
                    subject_id=subject_id,
                    actor_id=actor_id,
                    kind=kind,
                ))
                delta = kind_delta(kind_set, kind, 1)
                effective = kind
                created = True
            elif existing.kind == kind:
                self.session.delete(existing)
                delta = kind_delta(kind_set, kind, -1)
                effective = None
            else:
                delta = merge_deltas(
                    kind_delta(kind_set, existing.kind, -1),
                    kind_delta(kind_set, kind, 1),
                )
                existing.kind = kind
                effective = kind

            self.session.flush()
            aggregate = self.subjects.apply_aggregate_delta(subject_type, subject_id, delta)
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            logger.warning("Concurrent reaction on %s %s by %s", subject_type.value, subject_id, actor_id)
            raise ConflictRetry("Concurrent reaction, retry the request") from exc
        except OperationalError as exc:
            self.session.rollback()
            if not is_serialization_failure(exc):
                raise
            logger.warning("Serialization failure on %s %s by %s", subject_type.value, subject_id, actor_id)
            raise ConflictRetry("Concurrent reaction, retry the request") from exc
        except Exception:
            self.session.rollback()
            raise

        logger.debug(
            "Reaction %s on %s %s by %s -> %s",
            kind.value, subject_type.value, subject_id, actor_id, aggregate,
        )
        if created:
            self._notify(subject_type, subject, actor, kind)
        return ReactionResult(
            subject_type=subject_type,
            subject_id=subject_id,
            aggregate=aggregate,
            effective_kind=effective,
        )

    def get_reaction(self, subject_type, subject_id: str, actor_id: str) -> ReactionKind | None:
        """The actor's current reaction kind on a subject, if any"""
        subject_type = self._subject_type(subject_type)
        return self.session.execute(
            select(Reaction.kind).where(
                Reaction.subject_type == subject_type,
                Reaction.subject_id == subject_id,
                Reaction.actor_id == actor_id,
            )
        ).scalar_one_or_none()

    def list_reactors(self, subject_type, subject_id: str) -> list[Reaction]:
        """Ledger rows of a subject, newest first"""
        subject_type = self._subject_type(subject_type)
        return list(self.session.scalars(
            select(Reaction).where(
                Reaction.subject_type == subject_type,
                Reaction.subject_id == subject_id,
            ).order_by(Reaction.created_at.desc())
        ))

    def list_reactor_users(self, subject_type, subject_id: str) -> list[tuple[Reaction, User]]:
        """Ledger rows of a subject paired with the reacting users, newest first"""
        subject_type = self._subject_type(subject_type)
        return [
            (reaction, user)
            for reaction, user in self.session.execute(
                select(Reaction, User)
                .join(User, User.id == Reaction.actor_id)
                .where(
                    Reaction.subject_type == subject_type,
                    Reaction.subject_id == subject_id,
                )
                .order_by(Reaction.created_at.desc())
            )
        ]

    def count_rows(self, subject_type, subject_id: str) -> dict[ReactionKind, int]:
        """Ledger row count per kind, the source of truth for the aggregates"""
        counts: dict[ReactionKind, int] = {}
        for row in self.list_reactors(subject_type, subject_id):
            counts[row.kind] = counts.get(row.kind, 0) + 1
        return counts

    @staticmethod
    def _subject_type(subject_type) -> SubjectType:
        try:
            return SubjectType(subject_type)
        except ValueError:
            raise InvalidKind(f"Unknown subject type {subject_type!r}")

    @staticmethod
    def _check_kind(kind_set: KindSet, kind) -> ReactionKind:
        try:
            kind = ReactionKind(kind)
        except ValueError:
            raise InvalidKind(f"Unknown reaction kind {kind!r}")
        if kind not in ALLOWED_KINDS[kind_set]:
            allowed = ", ".join(sorted(k.value for k in ALLOWED_KINDS[kind_set]))
            raise InvalidKind(f"Reaction kind {kind.value!r} not allowed here, expected one of: {allowed}")
        return kind

    def _get_actor(self, actor_id: str) -> User:
        actor = self.session.get(User, actor_id)
        if actor is None:
            raise NotFound("User not found")
        if not actor.is_active or actor.is_banned:
            raise Unauthorized("User is not allowed to react")
        return actor

    def _notify(self, subject_type: SubjectType, subject, actor: User, kind: ReactionKind) -> None:
        if self.notifier is None:
            return
        try:
            context = {"actor": actor.display_name, "actor_id": actor.id}
            if subject_type == SubjectType.POST:
                template = "like"
                context["post_id"] = subject.id
            elif subject_type == SubjectType.COMMENT:
                template = "comment_like"
                context["post_id"] = subject.post_id
            else:
                template = "vote"
                context["direction"] = kind.value
                context["subject"] = subject_type.value
                if subject_type == SubjectType.ANSWER:
                    context["link"] = f"/questions/{subject.question_id}"
                elif subject_type == SubjectType.QUESTION:
                    context["link"] = f"/questions/{subject.id}"
                else:
                    context["link"] = f"/files/{subject.id}"
            self.notifier.notify(owner_id(subject), template, context)
        except Exception:
            logger.exception("Notification after %s reaction failed", subject_type.value)


def apply_with_retry(
    ledger: ReactionLedger,
    subject_type,
    subject_id: str,
    actor_id: str,
    kind,
    attempts: int | None = None,
    backoff: float | None = None,
) -> ReactionResult:
    """Call ledger.apply, retrying with linear backoff on ConflictRetry"""
    attempts = attempts or config.REACTION_RETRY_ATTEMPTS
    backoff = config.REACTION_RETRY_BACKOFF if backoff is None else backoff
    for attempt in range(1, attempts + 1):
        try:
            return ledger.apply(subject_type, subject_id, actor_id, kind)
        except ConflictRetry:
            if attempt == attempts:
                raise
            logger.warning("Reaction conflict, retry %d/%d", attempt, attempts - 1)
            time.sleep(backoff * attempt)

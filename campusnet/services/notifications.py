"""In-app notification emitter.

Notifications are a best-effort side effect of likes, votes, comments,
answers and follows. The emitter writes through its own session so that a
failure here never reaches the caller's transaction: every error is logged
and swallowed.
"""
import logging
from typing import Callable

from sqlalchemy.orm import Session

from campusnet.models.notification import Notification

logger = logging.getLogger(__name__)

# template kind -> (message, link)
TEMPLATES = {
    "like": ("{actor} liked your post", "/posts/{post_id}"),
    "comment_like": ("{actor} liked your comment", "/posts/{post_id}"),
    "comment": ("{actor} commented on your post", "/posts/{post_id}"),
    "reply": ("{actor} replied to your comment", "/posts/{post_id}"),
    "vote": ("{actor} {direction}voted your {subject}", "{link}"),
    "answer": ("{actor} answered your question", "/questions/{question_id}"),
    "accepted": ("{actor} accepted your answer", "/questions/{question_id}"),
    "follow": ("{actor} started following you", "/users/{actor_id}"),
}


class NotificationEmitter:
    """Fire-and-forget notification writer"""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def notify(self, recipient_id: str | None, template_kind: str, context: dict) -> None:
        """Enqueue a notification for recipient_id.

        Nothing is written when the recipient is missing or is the actor
        themself (context["actor_id"]).
        """
        if not recipient_id or recipient_id == context.get("actor_id"):
            return

        template = TEMPLATES.get(template_kind)
        if template is None:
            logger.warning("Unknown notification template %r, dropped", template_kind)
            return

        try:
            message, link = (part.format(**context) for part in template)
            session = self._session_factory()
            try:
                session.add(Notification(
                    user_id=recipient_id,
                    type=template_kind,
                    message=message,
                    link=link,
                ))
                session.commit()
            finally:
                session.close()
        except Exception:
            logger.exception(
                "Failed to enqueue %s notification for user %s", template_kind, recipient_id
            )

"""Comment threading: top-level comments with one level of replies.

Deleting a comment is a soft delete. The comment leaves the post's comment
list and its parent's reply list, but replies pointing at it are kept and
reported with ``parent_deleted=True``.
"""
import logging
from datetime import datetime, UTC

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from campusnet.models.comment import Comment, CommentStatus
from campusnet.models.post import Post
from campusnet.models.user import User
from campusnet.services.notifications import NotificationEmitter

logger = logging.getLogger(__name__)

DELETED_PLACEHOLDER = "[deleted]"


def _adjust_comment_count(session: Session, post_id: str, amount: int) -> None:
    session.execute(
        update(Post).where(Post.id == post_id).values(comment_count=Post.comment_count + amount),
        execution_options={"synchronize_session": "fetch"},
    )


def create_comment(
    session: Session,
    post: Post,
    author: User,
    content: str,
    parent_id: str | None = None,
    notifier: NotificationEmitter | None = None,
) -> Comment:
    """Create a comment on post, or a reply when parent_id is given"""
    parent = None
    if parent_id is not None:
        parent = session.get(Comment, parent_id)
        if parent is None or parent.status != CommentStatus.ACTIVE:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Parent comment not found"
            )
        if parent.post_id != post.id:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Parent comment belongs to another post"
            )
        if parent.parent_id is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot reply to a reply"
            )

    comment = Comment(
        post_id=post.id,
        author_id=author.id,
        parent_id=parent_id,
        content=content,
        status=CommentStatus.ACTIVE,
    )
    try:
        session.add(comment)
        session.flush()
        _adjust_comment_count(session, post.id, 1)
        session.commit()
    except Exception:
        session.rollback()
        raise
    session.refresh(comment)

    if notifier is not None:
        context = {"actor": author.display_name, "actor_id": author.id, "post_id": post.id}
        if parent is not None:
            notifier.notify(parent.author_id, "reply", context)
        else:
            notifier.notify(post.author_id, "comment", context)
    return comment


def soft_delete_comment(session: Session, comment: Comment) -> Comment:
    """Mark a comment deleted and drop it from the post's comment count.

    Replies are left untouched; ledger rows of the comment are kept.
    """
    if comment.status == CommentStatus.DELETED:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )
    try:
        comment.status = CommentStatus.DELETED
        comment.content = DELETED_PLACEHOLDER
        comment.updated_at = datetime.now(UTC)
        _adjust_comment_count(session, comment.post_id, -1)
        session.commit()
    except Exception:
        session.rollback()
        raise
    logger.info("Comment %s on post %s soft deleted", comment.id, comment.post_id)
    session.refresh(comment)
    return comment


def build_thread(session: Session, post_id: str) -> list[dict]:
    """Active comments of a post as a two-level forest, oldest first.

    Each node is ``{"comment": Comment, "parent_deleted": bool, "replies": [...]}``.
    Active replies whose parent was deleted are returned as top-level nodes
    with ``parent_deleted=True``.
    """
    rows = session.scalars(
        select(Comment).where(Comment.post_id == post_id).order_by(Comment.created_at)
    ).all()
    by_id = {row.id: row for row in rows}

    roots = {
        row.id: {"comment": row, "parent_deleted": False, "replies": []}
        for row in rows
        if row.parent_id is None and row.status == CommentStatus.ACTIVE
    }

    thread: list[dict] = []
    for row in rows:
        if row.status != CommentStatus.ACTIVE:
            continue
        if row.parent_id is None:
            thread.append(roots[row.id])
        elif row.parent_id in roots:
            roots[row.parent_id]["replies"].append(
                {"comment": row, "parent_deleted": False, "replies": []}
            )
        elif row.parent_id in by_id:
            thread.append({"comment": row, "parent_deleted": True, "replies": []})
    return thread

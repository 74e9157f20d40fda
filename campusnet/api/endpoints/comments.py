from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session
from campusnet.api.deps import get_notifier
from campusnet.db.database import get_session
from campusnet.models.comment import Comment, CommentStatus
from campusnet.models.post import Post, PostStatus
from campusnet.models.reaction import SubjectType
from campusnet.models.user import User
from campusnet.schemas.comment import CommentCreate, CommentUpdate, CommentResponse, CommentThreadNode
from campusnet.schemas.reaction import ReactorResponse
from campusnet.core.security import get_current_active_user
from campusnet.services.comments import build_thread, create_comment as create_comment_in_post, soft_delete_comment
from campusnet.services.notifications import NotificationEmitter
from campusnet.services.reaction_ledger import ReactionLedger
from datetime import datetime, UTC
from typing import List

router = APIRouter()

def _active_post(session: Session, post_id: str) -> Post:
    post = session.get(Post, post_id)
    if not post or post.status != PostStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

def _comment_in_post(session: Session, post_id: str, comment_id: str) -> Comment:
    comment = session.get(Comment, comment_id)
    if not comment or comment.status != CommentStatus.ACTIVE:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )
    if comment.post_id != post_id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found in this post"
        )
    return comment

def _node(node: dict) -> CommentThreadNode:
    response = CommentThreadNode.model_validate(node["comment"])
    response.parent_deleted = node["parent_deleted"]
    response.replies = [_node(reply) for reply in node["replies"]]
    return response

@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED, summary="Comment on a post or reply to a comment")
def create_comment(
    post_id: str,
    comment: CommentCreate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session),
    notifier: NotificationEmitter = Depends(get_notifier)
):
    """Create a comment, or a reply when parent_id is given"""
    post = _active_post(session, post_id)
    return create_comment_in_post(
        session,
        post,
        current_user,
        comment.content,
        parent_id=comment.parent_id,
        notifier=notifier
    )

@router.get("", response_model=List[CommentThreadNode], summary="List the comment thread of a post")
def list_comments(
    post_id: str,
    session: Session = Depends(get_session)
):
    """List comments with their replies, oldest first"""
    _active_post(session, post_id)
    return [_node(node) for node in build_thread(session, post_id)]

@router.get("/{comment_id}", response_model=CommentResponse, summary="Get a specific comment")
def get_comment(
    post_id: str,
    comment_id: str,
    session: Session = Depends(get_session)
):
    """Get a specific comment"""
    _active_post(session, post_id)
    return _comment_in_post(session, post_id, comment_id)

@router.put("/{comment_id}", response_model=CommentResponse, summary="Update a comment")
def update_comment(
    post_id: str,
    comment_id: str,
    comment_update: CommentUpdate,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Update a comment"""
    _active_post(session, post_id)
    comment = _comment_in_post(session, post_id, comment_id)
    if comment.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to update this comment"
        )

    comment.content = comment_update.content
    comment.updated_at = datetime.now(UTC)
    session.commit()
    session.refresh(comment)
    return comment

@router.delete("/{comment_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a comment")
def delete_comment(
    post_id: str,
    comment_id: str,
    current_user: User = Depends(get_current_active_user),
    session: Session = Depends(get_session)
):
    """Soft delete a comment; its replies stay readable"""
    comment = _comment_in_post(session, post_id, comment_id)
    post = session.get(Post, post_id)
    if comment.author_id != current_user.id and post.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this comment"
        )
    soft_delete_comment(session, comment)

@router.get("/{comment_id}/replies", response_model=List[CommentResponse], summary="List replies to a comment")
def list_replies(
    post_id: str,
    comment_id: str,
    session: Session = Depends(get_session)
):
    """List active replies to a comment, oldest first"""
    _active_post(session, post_id)
    _comment_in_post(session, post_id, comment_id)
    return session.scalars(
        select(Comment).where(
            Comment.parent_id == comment_id,
            Comment.status == CommentStatus.ACTIVE
        ).order_by(Comment.created_at)
    ).all()

@router.get("/{comment_id}/likes", response_model=List[ReactorResponse], summary="List users who liked a comment")
def list_comment_likes(
    post_id: str,
    comment_id: str,
    session: Session = Depends(get_session)
):
    """List users who liked a comment, newest first"""
    _active_post(session, post_id)
    _comment_in_post(session, post_id, comment_id)
    return [
        ReactorResponse(
            actor_id=user.id,
            username=user.username,
            name=user.name,
            kind=reaction.kind,
            created_at=reaction.created_at
        )
        for reaction, user in ReactionLedger(session).list_reactor_users(SubjectType.COMMENT, comment_id)
    ]

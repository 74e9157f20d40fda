import logging
from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session
from campusnet.core.security import get_current_admin_user
from campusnet.db.database import get_session
from campusnet.models.reaction import SubjectType
from campusnet.models.user import User
from campusnet.schemas.user import AdminUserUpdate, UserResponse
from campusnet.services.subject_store import SubjectStore

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/users", response_model=List[UserResponse], summary="List users")
def list_users(
    admin: Annotated[User, Depends(get_current_admin_user)],
    session: Annotated[Session, Depends(get_session)],
    banned: bool | None = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0)
):
    """List users, newest first"""
    query = select(User)
    if banned is not None:
        query = query.where(User.is_banned == banned)
    return session.scalars(query.order_by(User.created_at.desc()).offset(offset).limit(limit)).all()

@router.put("/users/{user_id}", response_model=UserResponse, summary="Update or ban a user")
def update_user(
    user_id: str,
    user_update: AdminUserUpdate,
    admin: Annotated[User, Depends(get_current_admin_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Change a user's profile or moderation flags"""
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    changes = user_update.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No valid fields to update"
        )
    if user.id == admin.id and any(flag in changes for flag in ("is_active", "is_banned", "is_admin")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own moderation flags"
        )

    for field, value in changes.items():
        setattr(user, field, value)
    session.commit()
    session.refresh(user)
    logger.info("Admin %s updated user %s: %s", admin.id, user_id, changes)
    return user

@router.delete("/posts/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete any post")
def delete_post(
    post_id: str,
    admin: Annotated[User, Depends(get_current_admin_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Delete a post with its comments and reactions, whatever its status"""
    SubjectStore(session).delete(SubjectType.POST, post_id)
    logger.info("Admin %s deleted post %s", admin.id, post_id)

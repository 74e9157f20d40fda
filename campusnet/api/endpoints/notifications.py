from typing import Annotated, List
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from campusnet.core.security import get_current_active_user
from campusnet.db.database import get_session
from campusnet.models.notification import Notification
from campusnet.models.user import User
from campusnet.schemas.notification import NotificationResponse, UnreadCountResponse

router = APIRouter()

def _own_notification(session: Session, notification_id: str, user: User) -> Notification:
    notification = session.get(Notification, notification_id)
    if not notification or notification.user_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return notification

@router.get("", response_model=List[NotificationResponse], summary="List notifications")
def list_notifications(
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)],
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0)
):
    """List the caller's notifications, newest first"""
    query = select(Notification).where(Notification.user_id == current_user.id)
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    return session.scalars(
        query.order_by(Notification.created_at.desc()).offset(offset).limit(limit)
    ).all()

@router.get("/unread-count", response_model=UnreadCountResponse, summary="Count unread notifications")
def unread_count(
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Count unread notifications"""
    count = session.scalar(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False)
        )
    )
    return {"count": count}

@router.post("/markAllRead", response_model=UnreadCountResponse, summary="Mark all notifications read")
def mark_all_read(
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Mark every notification read, returns the remaining unread count"""
    session.execute(
        update(Notification).where(
            Notification.user_id == current_user.id,
            Notification.is_read.is_(False)
        ).values(is_read=True),
        execution_options={"synchronize_session": False}
    )
    session.commit()
    return {"count": 0}

@router.post("/{notification_id}:markRead", response_model=NotificationResponse, summary="Mark a notification read")
def mark_read(
    notification_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Mark a notification read"""
    notification = _own_notification(session, notification_id, current_user)
    notification.is_read = True
    session.commit()
    session.refresh(notification)
    return notification

@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a notification")
def delete_notification(
    notification_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
):
    """Delete a notification"""
    session.delete(_own_notification(session, notification_id, current_user))
    session.commit()

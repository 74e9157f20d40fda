from datetime import datetime, timedelta, timezone
from typing import Annotated
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from campusnet.api.deps import get_notifier
from campusnet.core import config
from campusnet.core.security import (
    get_password_hash,
    verify_password,
    create_access_token,
    get_current_active_user,
)
from campusnet.db.database import get_session
from campusnet.models.follow import Follow
from campusnet.models.user import User
from campusnet.schemas.user import UserCreate, UserResponse, Token, UserUpdate, UserLogin, FollowResponse
from campusnet.services.notifications import NotificationEmitter

router = APIRouter()

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_in: UserCreate,
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Create a new user"""
    if user_in.username == config.BOT_USERNAME:
        raise HTTPException(
            status_code=400,
            detail="Username is reserved"
        )

    # Check if username already exists
    result = session.execute(
        select(User).where(User.username == user_in.username)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=400,
            detail="Username already exists"
        )

    # Check if email already exists
    result = session.execute(
        select(User).where(User.email == user_in.email)
    )
    if result.scalar_one_or_none():
        raise HTTPException(
            status_code=400,
            detail="Email already registered"
        )

    user = User(
        username=user_in.username,
        email=user_in.email,
        password_hash=get_password_hash(user_in.password),
        name=user_in.name,
        department=user_in.department,
        bio=user_in.bio,
        is_admin=user_in.username in config.ADMIN_USERNAMES
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user

@router.post("/login", response_model=Token)
def login(
    user_in: UserLogin,
    session: Annotated[Session, Depends(get_session)]
) -> dict:
    """Login a user"""
    result = session.execute(
        select(User).where(User.username == user_in.username)
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user.last_login = datetime.now(timezone.utc)
    session.commit()

    access_token = create_access_token(
        data={"sub": user.username},
        expires_delta=timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
def read_users_me(
    current_user: Annotated[User, Depends(get_current_active_user)]
) -> User:
    """Get the current user"""
    return current_user

@router.put("/me", response_model=UserResponse)
def update_user_me(
    user_update: UserUpdate,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Update the current user"""
    for field in ("name", "department", "bio"):
        value = getattr(user_update, field)
        if value is not None:
            setattr(current_user, field, value)
    session.commit()
    session.refresh(current_user)
    return current_user

@router.get("/{user_id}", response_model=UserResponse)
def read_user(
    user_id: str,
    session: Annotated[Session, Depends(get_session)]
) -> User:
    """Get a user profile"""
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user

@router.post("/{user_id}/follow", response_model=FollowResponse)
def toggle_follow(
    user_id: str,
    current_user: Annotated[User, Depends(get_current_active_user)],
    session: Annotated[Session, Depends(get_session)],
    notifier: Annotated[NotificationEmitter, Depends(get_notifier)]
) -> dict:
    """Follow a user, or unfollow when already following"""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot follow yourself"
        )
    if not session.get(User, user_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    existing = session.execute(
        select(Follow).where(
            Follow.follower_id == current_user.id,
            Follow.following_id == user_id
        )
    ).scalar_one_or_none()

    try:
        if existing:
            session.delete(existing)
        else:
            session.add(Follow(follower_id=current_user.id, following_id=user_id))
        session.commit()
    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Concurrent follow request, try again"
        )

    following = existing is None
    if following:
        notifier.notify(user_id, "follow", {
            "actor": current_user.display_name,
            "actor_id": current_user.id,
        })

    followers_count = session.scalar(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    return {"following": following, "followers_count": followers_count}

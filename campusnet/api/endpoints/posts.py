import logging
import secrets
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_, select
from sqlalchemy.orm import Session
from campusnet.core import config
from campusnet.db.database import get_session
from campusnet.models.post import Post, PostStatus
from campusnet.models.reaction import Reaction, SubjectType
from campusnet.models.user import User
from campusnet.schemas.post import BotPostCreate, PostCreate, PostUpdate, PostResponse
from campusnet.schemas.reaction import ReactorResponse
from campusnet.core.security import get_current_user, get_optional_current_user, get_password_hash
from campusnet.services.reaction_ledger import ReactionLedger
from campusnet.services.subject_store import SubjectStore
from typing import List, Optional

logger = logging.getLogger(__name__)

router = APIRouter()

def _visible_post(session: Session, post_id: str, current_user: Optional[User]) -> Post:
    """Load a post the caller may see"""
    post = session.get(Post, post_id)
    if not post:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    if post.status == PostStatus.HIDDEN and (current_user is None or current_user.id != post.author_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found"
        )
    return post

def _liked_post_ids(session: Session, post_ids: List[str], current_user: Optional[User]) -> set:
    if current_user is None or not post_ids:
        return set()
    return set(session.scalars(
        select(Reaction.subject_id).where(
            Reaction.subject_type == SubjectType.POST,
            Reaction.subject_id.in_(post_ids),
            Reaction.actor_id == current_user.id
        )
    ))

def _post_response(post: Post, liked: bool) -> PostResponse:
    response = PostResponse.model_validate(post)
    response.is_liked = liked
    return response

@router.post("", response_model=PostResponse, status_code=status.HTTP_201_CREATED, summary="Create a new post")
def create_post(
    post: PostCreate,
    current_user: User = Depends(get_current_user),
    session: Session = Depends(get_session)
):
    """Create a new post"""
    new_post = Post(
        content=post.content,
        author_id=current_user.id,
        status=PostStatus.ACTIVE
    )
    session.add(new_post)
    session.commit()
    session.refresh(new_post)
    return _post_response(new_post, False)

def _bot_user(session: Session) -> User:
    """The relay bot account, created on first use"""
    bot = session.execute(select(User).where(User.username == config.BOT_USERNAME)).scalar_one_or_none()
    if bot is None:
        bot = User(
            username=config.BOT_USERNAME,
            email=config.BOT_EMAIL,
            password_hash=get_password_hash(secrets.token_urlsafe(32)),
            name="Campus Bot",
            department="System"
        )
        session.add(bot)
        session.flush()
    return bot

@router.post("/bot", response_model=PostResponse, status_code=status.HTTP_201_CREATED, summary="Relay a group chat message as a post")
def create_bot_post(
    post: BotPostCreate,
    session: Session = Depends(get_session)
):
    """Create a bot post, authenticated by the configured bot token"""
    if not config.BOT_SECRET_TOKEN or not secrets.compare_digest(post.bot_token, config.BOT_SECRET_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid bot token"
        )

    new_post = Post(
        content=post.content,
        author_id=_bot_user(session).id,
        is_bot=True,
        status=PostStatus.ACTIVE
    )
    session.add(new_post)
    session.commit()
    session.refresh(new_post)
    logger.info("Bot post %s created", new_post.id)
    return _post_response(new_post, False)

@router.get("", response_model=List[PostResponse], summary="List posts, newest first")
def list_posts(
    author_id: Optional[str] = None,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """List active posts, plus the caller's own hidden posts"""
    query = select(Post)
    if current_user is not None:
        query = query.where(or_(Post.status == PostStatus.ACTIVE, Post.author_id == current_user.id))
    else:
        query = query.where(Post.status == PostStatus.ACTIVE)
    if author_id:
        query = query.where(Post.author_id == author_id)

    posts = session.scalars(
        query.order_by(Post.created_at.desc()).offset(offset).limit(limit)
    ).all()
    liked = _liked_post_ids(session, [post.id for post in posts], current_user)
    return [_post_response(post, post.id in liked) for post in posts]

@router.get("/{post_id}", response_model=PostResponse, summary="Get a specific post")
def get_post(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """Get a specific post"""
    post = _visible_post(session, post_id, current_user)
    return _post_response(post, post.id in _liked_post_ids(session, [post.id], current_user))

@router.put("/{post_id}", response_model=PostResponse, summary="Update a post")
def update_post(
    post_id: str,
    post_update: PostUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    """Update content or visibility of a post"""
    post = _visible_post(session, post_id, current_user)
    if post.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

    if post_update.content is not None:
        post.content = post_update.content
    if post_update.status is not None:
        post.status = post_update.status

    session.commit()
    session.refresh(post)
    return _post_response(post, post.id in _liked_post_ids(session, [post.id], current_user))

@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a post with its comments and reactions")
def delete_post(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    """Delete a post, its comments and every reaction on them"""
    post = _visible_post(session, post_id, current_user)
    if post.author_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You don't have permission to delete this post"
        )
    SubjectStore(session).delete(SubjectType.POST, post_id)
    return None

@router.get("/{post_id}/likes", response_model=List[ReactorResponse], summary="List users who liked a post")
def list_post_likes(
    post_id: str,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_current_user)
):
    """List users who liked a post, newest first"""
    _visible_post(session, post_id, current_user)
    return [
        ReactorResponse(
            actor_id=user.id,
            username=user.username,
            name=user.name,
            kind=reaction.kind,
            created_at=reaction.created_at
        )
        for reaction, user in ReactionLedger(session).list_reactor_users(SubjectType.POST, post_id)
    ]

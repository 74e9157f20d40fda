from fastapi import APIRouter
from campusnet.api.endpoints import (
    users,
    posts,
    comments,
    questions,
    files,
    reactions,
    notifications,
    admin
)

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(posts.router, prefix="/posts", tags=["posts"])
api_router.include_router(comments.router, prefix="/posts/{post_id}/comments", tags=["comments"])
api_router.include_router(questions.router, prefix="/questions", tags=["questions"])
api_router.include_router(files.router, prefix="/files", tags=["files"])
api_router.include_router(reactions.router, prefix="/reactions", tags=["reactions"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])

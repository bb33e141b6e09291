"""API v1 endpoints."""

from .auth import router as auth_router
from .comments import replies_router
from .comments import router as comments_router
from .posts import router as posts_router
from .search import router as search_router
from .topics import router as topics_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "comments_router",
    "posts_router",
    "replies_router",
    "search_router",
    "topics_router",
    "users_router",
]

"""Version 1 API endpoints."""

from .endpoints import (
    auth_router,
    comments_router,
    posts_router,
    replies_router,
    search_router,
    topics_router,
    users_router,
)

__all__ = [
    "auth_router",
    "comments_router",
    "posts_router",
    "replies_router",
    "search_router",
    "topics_router",
    "users_router",
]

"""SQLAlchemy models for the Neko Blog application."""

from .comment import Comment, Reply
from .engagement import Engagement, EngagementKind, TargetKind
from .post import Post
from .topic import Topic
from .user import User

__all__ = [
    "Comment", "Reply",
    "Engagement", "EngagementKind", "TargetKind",
    "Post",
    "Topic",
    "User",
]

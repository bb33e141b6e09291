"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .comment import CommentCreate, CommentResponse, ContentUpdate, ReplyCreate, ReplyResponse
from .common import Envelope, IdList
from .engagement import EngagementStateResponse
from .post import PostCreate, PostListType, PostResponse, StagedImage
from .topic import TopicCreate, TopicResponse
from .user import LoginRequest, RegisterRequest, TokenResponse, UserProfile

__all__ = [
    "CommentCreate", "CommentResponse", "ContentUpdate", "ReplyCreate", "ReplyResponse",
    "Envelope", "IdList",
    "EngagementStateResponse",
    "PostCreate", "PostListType", "PostResponse", "StagedImage",
    "TopicCreate", "TopicResponse",
    "LoginRequest", "RegisterRequest", "TokenResponse", "UserProfile",
]

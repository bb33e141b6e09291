"""Shared API dependencies for authentication and services."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from neko_blog.core.errors import AuthError
from neko_blog.core.security import decode_access_token
from neko_blog.db.session import get_db
from neko_blog.models import User
from neko_blog.services.cache import CacheService, get_cache_service
from neko_blog.services.comments import CommentService, ReplyService
from neko_blog.services.follows import FollowService
from neko_blog.services.posts import PostService
from neko_blog.services.search import SearchIndexClient, get_search_client
from neko_blog.services.topics import TopicService
from neko_blog.services.users import AccountService

# Errors are reported through the envelope, so missing credentials must not
# short-circuit with a bare 403.
bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]


def get_cache_service_dep() -> CacheService:
    """Return the shared cache service."""
    return get_cache_service()


def get_search_client_dep() -> SearchIndexClient:
    """Return the shared search indexer client."""
    return get_search_client()


CacheDep = Annotated[CacheService, Depends(get_cache_service_dep)]
SearchDep = Annotated[SearchIndexClient, Depends(get_search_client_dep)]


def get_bearer_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
) -> str:
    if credentials is None or not credentials.credentials:
        raise AuthError("missing bearer token")
    return credentials.credentials


TokenDep = Annotated[str, Depends(get_bearer_token)]


def get_current_user(token: TokenDep, db: SessionDep, cache: CacheDep) -> User:
    """Resolve the caller from a bearer token that is still in their token list.

    Raises:
        AuthError: If the token is invalid, revoked, or its user is gone.
    """
    user_id = decode_access_token(token)
    if not cache.has_token(user_id, token):
        raise AuthError("token has expired or been revoked")

    user = db.get(User, user_id)
    if user is None:
        raise AuthError("user not found")
    return user


CurrentUserDep = Annotated[User, Depends(get_current_user)]


def get_account_service(db: SessionDep, cache: CacheDep) -> AccountService:
    return AccountService(db, cache)


def get_post_service(db: SessionDep, cache: CacheDep, search: SearchDep) -> PostService:
    return PostService(db, cache, search)


def get_comment_service(db: SessionDep) -> CommentService:
    return CommentService(db)


def get_reply_service(db: SessionDep) -> ReplyService:
    return ReplyService(db)


def get_topic_service(db: SessionDep) -> TopicService:
    return TopicService(db)


def get_follow_service(db: SessionDep) -> FollowService:
    return FollowService(db)


AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
PostServiceDep = Annotated[PostService, Depends(get_post_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
ReplyServiceDep = Annotated[ReplyService, Depends(get_reply_service)]
TopicServiceDep = Annotated[TopicService, Depends(get_topic_service)]
FollowServiceDep = Annotated[FollowService, Depends(get_follow_service)]

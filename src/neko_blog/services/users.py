"""Account registration, login and logout."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from neko_blog.core.errors import AuthError, ParameterError, TargetNotFoundError
from neko_blog.core.security import create_access_token, hash_password, verify_password
from neko_blog.models import User
from neko_blog.models.engagement import TargetKind
from neko_blog.services.cache import CacheService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IssuedToken:
    token: str
    user_id: int
    expires_at: datetime


class AccountService:
    """User accounts and their session token lists."""

    def __init__(self, session: Session, cache: CacheService) -> None:
        self.session = session
        self.cache = cache

    def register(self, username: str, password: str, nickname: str | None = None) -> User:
        """Create an account.

        Raises:
            ParameterError: If the username is taken.
        """
        taken = self.session.execute(select(User.id).where(User.username == username)).first()
        if taken is not None:
            raise ParameterError("username already exists")

        user = User(
            username=username,
            nickname=nickname or username,
            password_hash=hash_password(password),
        )
        try:
            self.session.add(user)
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise ParameterError("username already exists") from err
        self.session.refresh(user)
        logger.info("Registered user %s", user.id)
        return user

    def login(self, username: str, password: str) -> IssuedToken:
        """Check credentials and record a fresh token in the user's token list.

        Only the newest tokens are kept; logging in on one device too many
        signs out the oldest session.
        """
        user = self.session.execute(select(User).where(User.username == username)).scalar_one_or_none()
        if user is None or not verify_password(password, user.password_hash):
            raise AuthError("invalid username or password")

        token, expires_at = create_access_token(user.id)
        ttl = max(int((expires_at - datetime.now(UTC)).total_seconds()), 1)
        self.cache.push_token(user.id, token, ttl)
        return IssuedToken(token=token, user_id=user.id, expires_at=expires_at)

    def logout(self, user_id: int, token: str) -> None:
        if not self.cache.revoke_token(user_id, token):
            raise AuthError("token has already been revoked")

    def get_user(self, user_id: int) -> User:
        user = self.session.get(User, user_id)
        if user is None:
            raise TargetNotFoundError(TargetKind.USER.value, user_id)
        return user

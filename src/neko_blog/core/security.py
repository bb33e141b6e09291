"""Password hashing and bearer token helpers."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from neko_blog.core.errors import AuthError
from neko_blog.core.settings import settings

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: int) -> tuple[str, datetime]:
    """Create a signed JWT for ``user_id`` and return it with its expiry.

    Each token carries a random ``jti`` so two logins within the same second
    still produce distinct entries in the user's token list.
    """
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    claims: dict[str, Any] = {
        "sub": str(user_id),
        "iss": settings.token_issuer,
        "exp": expire,
        "jti": secrets.token_hex(8),
    }
    token: str = jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, expire


def decode_access_token(token: str) -> int:
    """Validate ``token`` and return the user id it was issued to.

    Raises:
        AuthError: If the token is malformed, expired or from another issuer.
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.token_issuer,
        )
    except JWTError as err:
        raise AuthError("invalid or expired token") from err

    subject = payload.get("sub")
    if subject is None or not str(subject).isdigit():
        raise AuthError("invalid token subject")
    return int(subject)


def token_expires_at(token: str) -> float | None:
    """Return the ``exp`` claim of ``token`` as a unix timestamp.

    The signature is not checked. None means the claims cannot be read.
    """
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    expire = claims.get("exp")
    if not isinstance(expire, (int, float)):
        return None
    return float(expire)

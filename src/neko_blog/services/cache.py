"""Redis-backed session token lists and image staging for Neko Blog."""

from __future__ import annotations

import contextlib
import itertools
import logging
import os
import time
import uuid
from collections import defaultdict
from collections.abc import Iterator
from threading import Lock
from typing import Final

import redis

from neko_blog.core.errors import StorageUnavailableError
from neko_blog.core.security import token_expires_at
from neko_blog.core.settings import settings

logger = logging.getLogger(__name__)

_TEST_MODE: Final[bool] = os.getenv("PYTEST_RUNNING", "").lower() == "true"

TOKEN_LIST_PREFIX: Final[str] = "USER:TOKENS"
IMAGE_CACHE_PREFIX: Final[str] = "CACHE:IMAGE:LIST"
IMAGE_CLEAN_STREAM: Final[str] = "CACHE:IMAGE:CLEAN"


def token_list_key(user_id: int) -> str:
    return f"{TOKEN_LIST_PREFIX}:{user_id}"


def image_key(image_id: str) -> str:
    return f"{IMAGE_CACHE_PREFIX}:{image_id}"


@contextlib.contextmanager
def _redis_errors(action: str) -> Iterator[None]:
    try:
        yield
    except redis.RedisError as exc:
        logger.warning("Redis %s failed: %s", action, exc)
        raise StorageUnavailableError(f"cache unavailable while trying to {action}") from exc


class CacheService:
    """Keeps per-user session token lists and staged image metadata.

    A Redis client is used whenever one is configured. Under pytest, with no
    client supplied, an in-process store with the same semantics is used so
    the API can be exercised without a Redis server.
    """

    def __init__(
        self,
        client: redis.Redis | None = None,
        *,
        testing_mode: bool | None = None,
        max_tokens: int | None = None,
    ) -> None:
        self._testing_mode = _TEST_MODE if testing_mode is None else testing_mode
        if client is None and not self._testing_mode:
            client = redis.Redis.from_url(
                settings.redis_url,
                socket_timeout=settings.redis_socket_timeout,
                decode_responses=True,
            )
        self._redis = client
        self.max_tokens = max_tokens or settings.max_tokens_per_user

    # --- Session token lists --------------------------------------------------------
    def push_token(self, user_id: int, token: str, ttl_seconds: int) -> None:
        """Append ``token`` and keep only the newest ``max_tokens`` entries.

        The append, trim and expiry are applied in one MULTI/EXEC block so a
        concurrent reader never sees the list above its cap.
        """
        key = token_list_key(user_id)
        if self._redis is not None:
            with _redis_errors("store session token"):
                pipe = self._redis.pipeline(transaction=True)
                pipe.rpush(key, token)
                pipe.ltrim(key, -self.max_tokens, -1)
                pipe.expire(key, int(ttl_seconds))
                pipe.execute()
            return

        with _CACHE_LOCK:
            tokens = _TOKEN_CACHE[key]
            tokens.append(token)
            del tokens[: -self.max_tokens]

    def list_tokens(self, user_id: int) -> list[str]:
        """Return the user's live tokens, oldest first."""
        key = token_list_key(user_id)
        if self._redis is not None:
            with _redis_errors("read session tokens"):
                return list(self._redis.lrange(key, 0, -1))

        with _CACHE_LOCK:
            return list(_TOKEN_CACHE.get(key, []))

    def has_token(self, user_id: int, token: str) -> bool:
        key = token_list_key(user_id)
        if self._redis is not None:
            with _redis_errors("check session token"):
                return self._redis.lpos(key, token) is not None

        with _CACHE_LOCK:
            return token in _TOKEN_CACHE.get(key, [])

    def revoke_token(self, user_id: int, token: str) -> bool:
        """Remove ``token`` from the user's list; False if it was not present."""
        key = token_list_key(user_id)
        if self._redis is not None:
            with _redis_errors("revoke session token"):
                return int(self._redis.lrem(key, 0, token)) > 0

        with _CACHE_LOCK:
            tokens = _TOKEN_CACHE.get(key, [])
            if token not in tokens:
                return False
            tokens[:] = [t for t in tokens if t != token]
            return True

    def sweep_expired_tokens(self, *, now: float | None = None) -> int:
        """Drop expired or unreadable tokens from every user's list.

        Returns:
            The number of tokens removed.
        """
        current = time.time() if now is None else now

        def expired(token: str) -> bool:
            expire = token_expires_at(token)
            return expire is None or expire <= current

        removed = 0
        if self._redis is not None:
            with _redis_errors("sweep session tokens"):
                for key in self._redis.scan_iter(match=f"{TOKEN_LIST_PREFIX}:*"):
                    stale = [token for token in self._redis.lrange(key, 0, -1) if expired(token)]
                    if not stale:
                        continue
                    pipe = self._redis.pipeline(transaction=True)
                    for token in stale:
                        pipe.lrem(key, 0, token)
                    removed += sum(int(count) for count in pipe.execute())
        else:
            with _CACHE_LOCK:
                for tokens in _TOKEN_CACHE.values():
                    kept = [token for token in tokens if not expired(token)]
                    removed += len(tokens) - len(kept)
                    tokens[:] = kept

        if removed:
            logger.info("Removed %d expired session tokens", removed)
        return removed

    # --- Image staging --------------------------------------------------------------
    def stage_image(self, filename: str, *, expire_seconds: int | None = None) -> str:
        """Register an uploaded file as a staged image and return its id.

        Staged images must be consumed by a post before ``expire_seconds``
        elapse, otherwise the maintenance sweep queues them for removal.
        """
        image_id = uuid.uuid4().hex
        ttl = settings.cache_image_expire_seconds if expire_seconds is None else expire_seconds
        entry = {"filename": filename, "expire": str(int(time.time()) + int(ttl))}
        if self._redis is not None:
            with _redis_errors("stage image"):
                self._redis.hset(image_key(image_id), mapping=entry)
            return image_id

        with _CACHE_LOCK:
            _IMAGE_CACHE[image_key(image_id)] = entry
        return image_id

    def _image_entry(self, image_id: str) -> dict[str, str]:
        if self._redis is not None:
            with _redis_errors("read staged image"):
                return dict(self._redis.hgetall(image_key(image_id)))

        with _CACHE_LOCK:
            return dict(_IMAGE_CACHE.get(image_key(image_id), {}))

    def staged_filename(self, image_id: str) -> str | None:
        return self._image_entry(image_id).get("filename") or None

    def is_image_available(self, image_id: str, *, now: float | None = None) -> bool:
        """Return True if the staged image exists and has not expired."""
        entry = self._image_entry(image_id)
        if not entry.get("filename"):
            return False
        current = time.time() if now is None else now
        return int(entry.get("expire", 0)) >= int(current)

    def consume_image(self, image_id: str) -> str | None:
        """Take a staged image out of the staging area and return its file name.

        The staged copy is queued on the clean-up stream in the same
        transaction that deletes its registry entry. Returns None if the
        image is not staged.
        """
        filename = self._image_entry(image_id).get("filename")
        if not filename:
            return None
        self.discard_image(image_id, filename)
        return filename

    def discard_image(self, image_id: str, filename: str) -> None:
        """Drop a staged image entry and queue its staged file for removal."""
        if self._redis is not None:
            with _redis_errors("discard staged image"):
                pipe = self._redis.pipeline(transaction=True)
                pipe.xadd(IMAGE_CLEAN_STREAM, {"filename": filename})
                pipe.delete(image_key(image_id))
                pipe.execute()
            return

        with _CACHE_LOCK:
            _CLEAN_QUEUE.append((f"{next(_CLEAN_SEQ)}-0", filename))
            _IMAGE_CACHE.pop(image_key(image_id), None)

    def sweep_expired_images(self, *, now: float | None = None) -> list[str]:
        """Queue every expired staged image for removal; return their file names."""
        current = int(time.time() if now is None else now)
        expired: list[tuple[str, str]] = []

        if self._redis is not None:
            with _redis_errors("scan staged images"):
                for key in self._redis.scan_iter(match=f"{IMAGE_CACHE_PREFIX}:*"):
                    entry = self._redis.hgetall(key)
                    if int(entry.get("expire", 0)) < current:
                        expired.append((key.rsplit(":", 1)[-1], entry.get("filename", "")))
        else:
            with _CACHE_LOCK:
                for key, entry in _IMAGE_CACHE.items():
                    if int(entry.get("expire", 0)) < current:
                        expired.append((key.rsplit(":", 1)[-1], entry.get("filename", "")))

        for image_id, filename in expired:
            self.discard_image(image_id, filename)
        if expired:
            logger.info("Queued %d expired staged images for removal", len(expired))
        return [filename for _, filename in expired]

    def read_cleanup_queue(self, count: int = 100) -> list[tuple[str, str]]:
        """Return up to ``count`` pending (entry id, file name) removals."""
        if self._redis is not None:
            with _redis_errors("read image cleanup queue"):
                entries = self._redis.xrange(IMAGE_CLEAN_STREAM, count=count)
            return [(entry_id, fields.get("filename", "")) for entry_id, fields in entries]

        with _CACHE_LOCK:
            return list(_CLEAN_QUEUE[:count])

    def ack_cleanup(self, entry_ids: list[str]) -> None:
        """Drop processed removals from the cleanup queue."""
        if not entry_ids:
            return
        if self._redis is not None:
            with _redis_errors("acknowledge image cleanup"):
                self._redis.xdel(IMAGE_CLEAN_STREAM, *entry_ids)
            return

        done = set(entry_ids)
        with _CACHE_LOCK:
            _CLEAN_QUEUE[:] = [item for item in _CLEAN_QUEUE if item[0] not in done]

    def close(self) -> None:
        if self._redis is not None:
            self._redis.close()


_TOKEN_CACHE: dict[str, list[str]] = defaultdict(list)
_IMAGE_CACHE: dict[str, dict[str, str]] = {}
_CLEAN_QUEUE: list[tuple[str, str]] = []
_CLEAN_SEQ = itertools.count(1)
_CACHE_LOCK = Lock()


def reset_local_cache() -> None:
    """Clear the in-process store used when no Redis client is configured."""
    with _CACHE_LOCK:
        _TOKEN_CACHE.clear()
        _IMAGE_CACHE.clear()
        _CLEAN_QUEUE.clear()


class _CacheServiceSingleton:
    """Singleton wrapper for CacheService."""

    _instance: CacheService | None = None

    @classmethod
    def get_instance(cls) -> CacheService:
        if cls._instance is None:
            cls._instance = CacheService()
        return cls._instance


def get_cache_service() -> CacheService:
    """Return the process-wide cache service."""
    return _CacheServiceSingleton.get_instance()

"""Client for the external full-text search indexer.

The indexer owns tokenizing and ranking. This module only tells it about new
or removed posts and forwards search queries to it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from neko_blog.core.errors import StorageUnavailableError
from neko_blog.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchConfig:
    """Configuration for talking to the search indexer."""

    enabled: bool
    base_url: str
    timeout_seconds: float


def _config_from_settings() -> SearchConfig:
    return SearchConfig(
        enabled=settings.search_enabled,
        base_url=(settings.search_service_url or "").rstrip("/"),
        timeout_seconds=float(settings.search_http_timeout_seconds),
    )


class SearchIndexClient:
    """Thin synchronous HTTP client for the search indexer."""

    def __init__(
        self,
        config: SearchConfig | None = None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.config = config or _config_from_settings()
        self._client: httpx.Client | None = None
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self.config.base_url,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
                headers={"User-Agent": f"neko-blog/{settings.app_version}"},
            )
        return self._client

    def index_post(self, post_id: int, title: str, content: str) -> bool:
        """Notify the indexer about a new post.

        Failures are logged and reported through the return value only; a
        post is never rejected because the indexer is unavailable.
        """
        if not self.enabled:
            return False
        payload = {"id": post_id, "title": title, "content": content}
        try:
            response = self._ensure_client().post("/posts", json=payload)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Failed to index post %s: %s", post_id, exc)
            return False
        return True

    def remove_post(self, post_id: int) -> bool:
        if not self.enabled:
            return False
        try:
            response = self._ensure_client().delete(f"/posts/{post_id}")
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("Failed to remove post %s from the index: %s", post_id, exc)
            return False
        return True

    def search_posts(self, query: str, limit: int) -> list[int]:
        """Return ids of posts matching ``query``, best match first.

        Raises:
            StorageUnavailableError: If the indexer cannot be reached.
        """
        if not self.enabled:
            return []
        try:
            response = self._ensure_client().get(
                "/posts/search", params={"q": query, "limit": limit}
            )
            response.raise_for_status()
            body: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Search query failed: %s", exc)
            raise StorageUnavailableError("search service unavailable") from exc
        return [int(item) for item in body.get("ids", [])][:limit]

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None


class _SearchClientSingleton:
    """Singleton wrapper for SearchIndexClient."""

    _instance: SearchIndexClient | None = None

    @classmethod
    def get_instance(cls) -> SearchIndexClient:
        if cls._instance is None:
            cls._instance = SearchIndexClient()
        return cls._instance


def get_search_client() -> SearchIndexClient:
    """Return a singleton search indexer client."""
    return _SearchClientSingleton.get_instance()

"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from neko_blog.core.errors import ResponseCode


class Envelope(BaseModel):
    """Body of every API response; the HTTP status is always 200."""

    code: int = Field(ResponseCode.SUCCESS, description="Body-encoded status code.")
    message: str = "succeed"
    data: Any = None


class IdList(BaseModel):
    """Ordered list of entity identifiers."""

    ids: list[int | str]


def to_timestamp(value: object) -> object:
    """Render ``datetime`` values as unix seconds.

    Naive values are UTC; SQLite drops the offset on the way back.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return int(value.timestamp())
    return value

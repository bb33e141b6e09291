"""Post-related Pydantic schemas."""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import to_timestamp


class PostListType(str, Enum):
    ALL = "all"
    USER = "user"
    LIKED = "liked"
    FAVOURITED = "favourited"
    TOPIC = "topic"


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    title: str = Field(..., min_length=1, max_length=100)
    content: str = Field(..., min_length=1, max_length=5000)
    images: list[str] = Field(default_factory=list, description="Staged image ids")
    topic_id: str | None = Field(None, description="24-character hex topic id")
    parent_post_id: int | None = Field(None, description="Reposted post id")


class StagedImage(BaseModel):
    """Id of an uploaded image waiting to be attached to a post."""

    id: str


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    author_id: int
    parent_post_id: int | None
    topic_id: str | None
    title: str
    content: str
    images: list[str]
    like_count: int
    favourite_count: int
    created_at: int

    @model_validator(mode="before")
    @classmethod
    def _render_fields(cls, data: object) -> object:
        if not isinstance(data, dict):
            data = {name: getattr(data, name, None) for name in cls.model_fields}

        topic_id = data.get("topic_id")
        if isinstance(topic_id, bytes | bytearray):
            data["topic_id"] = bytes(topic_id).hex()
        data["images"] = list(data.get("images") or [])
        data["created_at"] = to_timestamp(data.get("created_at"))
        return data

    model_config = ConfigDict(from_attributes=True)

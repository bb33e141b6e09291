"""Topic schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import to_timestamp


class TopicCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=64)
    description: str = Field("", max_length=500)


class TopicResponse(BaseModel):
    """Topic detail; ``id`` is the 24-character hex form of the ObjectId."""

    id: str
    name: str
    description: str
    creator_id: int
    like_count: int
    dislike_count: int
    post_count: int = 0
    created_at: int

    @model_validator(mode="before")
    @classmethod
    def _render_fields(cls, data: object) -> object:
        if not isinstance(data, dict):
            data = {name: getattr(data, name, None) for name in cls.model_fields}
            data["post_count"] = data.get("post_count") or 0

        topic_id = data.get("id")
        if isinstance(topic_id, bytes | bytearray):
            data["id"] = bytes(topic_id).hex()
        data["created_at"] = to_timestamp(data.get("created_at"))
        return data

    model_config = ConfigDict(from_attributes=True)

"""Comment and reply schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import to_timestamp


class CommentCreate(BaseModel):
    post_id: int
    content: str = Field(..., min_length=1, max_length=1000)


class ContentUpdate(BaseModel):
    """New body for an existing comment or reply."""

    content: str = Field(..., min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    author_id: int
    username: str
    content: str
    like_count: int
    dislike_count: int
    created_at: int

    @model_validator(mode="before")
    @classmethod
    def _render_timestamp(cls, data: object) -> object:
        if not isinstance(data, dict):
            data = {name: getattr(data, name, None) for name in cls.model_fields}
        data["created_at"] = to_timestamp(data.get("created_at"))
        return data

    model_config = ConfigDict(from_attributes=True)


class ReplyCreate(BaseModel):
    comment_id: int
    parent_reply_id: int | None = Field(None, description="Reply being answered, if any")
    content: str = Field(..., min_length=1, max_length=1000)


class ReplyResponse(BaseModel):
    id: int
    comment_id: int
    parent_reply_id: int | None
    parent_reply_uid: int | None
    author_id: int
    content: str
    like_count: int
    dislike_count: int
    created_at: int

    @model_validator(mode="before")
    @classmethod
    def _render_timestamp(cls, data: object) -> object:
        if not isinstance(data, dict):
            data = {name: getattr(data, name, None) for name in cls.model_fields}
        data["created_at"] = to_timestamp(data.get("created_at"))
        return data

    model_config = ConfigDict(from_attributes=True)

"""User and authentication schemas."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import to_timestamp


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=32, pattern=r"^[A-Za-z0-9_]+$")
    password: str = Field(..., min_length=6, max_length=64)
    nickname: str | None = Field(None, max_length=32)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=32)
    password: str = Field(..., min_length=1, max_length=64)


class TokenResponse(BaseModel):
    """Bearer token issued on login."""

    token: str
    uid: int
    expires_at: int


class UserProfile(BaseModel):
    """Public profile of a user."""

    uid: int = Field(validation_alias="id")
    username: str
    nickname: str | None
    follower_count: int
    following_count: int
    created_at: int

    @model_validator(mode="before")
    @classmethod
    def _render_timestamp(cls, data: object) -> object:
        if not isinstance(data, dict):
            data = {name: getattr(data, name, None) for name in ("id", *cls.model_fields)}
        data["created_at"] = to_timestamp(data.get("created_at"))
        return data

    model_config = ConfigDict(from_attributes=True)

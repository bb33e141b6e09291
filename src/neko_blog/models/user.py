"""SQLAlchemy models for user accounts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from neko_blog.db.session import Base
from neko_blog.db.time import utcnow
from neko_blog.db.types import BigIntPK


class User(Base):
    """Registered account; the actor of every engagement."""

    __tablename__ = "user_info"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    nickname: Mapped[str | None] = mapped_column(Text, nullable=True)
    password_hash: Mapped[str] = mapped_column(Text, nullable=False)

    # Denormalized follow graph counters, updated with the follow records.
    follower_count: Mapped[int] = mapped_column(default=0, nullable=False)
    following_count: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

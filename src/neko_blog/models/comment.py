"""SQLAlchemy models for comments and replies."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, DateTime, ForeignKey, Text
from sqlalchemy.orm import Mapped, mapped_column

from neko_blog.db.session import Base
from neko_blog.db.time import utcnow
from neko_blog.db.types import BigIntPK


class Comment(Base):
    """Top-level comment attached to a post."""

    __tablename__ = "comment_info"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    post_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("post_info.id"), nullable=False, index=True
    )
    author_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("user_info.id"), nullable=False)
    username: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    like_count: Mapped[int] = mapped_column(default=0, nullable=False)
    dislike_count: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )


class Reply(Base):
    """Reply under a comment, optionally addressed to another reply."""

    __tablename__ = "reply_info"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    comment_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("comment_info.id"), nullable=False, index=True
    )
    parent_reply_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("reply_info.id"), nullable=True
    )
    # Author of the reply being answered, kept so clients can render "@user".
    parent_reply_uid: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    author_id: Mapped[int] = mapped_column(BigInteger, ForeignKey("user_info.id"), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    like_count: Mapped[int] = mapped_column(default=0, nullable=False)
    dislike_count: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

"""SQLAlchemy models for posts."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, ForeignKey, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column

from neko_blog.db.session import Base
from neko_blog.db.time import utcnow
from neko_blog.db.types import BigIntPK


class Post(Base):
    """Primary content entity produced by users."""

    __tablename__ = "post_info"

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    author_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_info.id"), nullable=False, index=True
    )
    # Set when the post is a repost of another post.
    parent_post_id: Mapped[int | None] = mapped_column(
        BigInteger, ForeignKey("post_info.id"), nullable=True
    )
    topic_id: Mapped[bytes | None] = mapped_column(
        LargeBinary(12), ForeignKey("topic.id"), nullable=True, index=True
    )
    ip_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    # Stored file names of images promoted out of the staging area.
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    like_count: Mapped[int] = mapped_column(default=0, nullable=False)
    favourite_count: Mapped[int] = mapped_column(default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

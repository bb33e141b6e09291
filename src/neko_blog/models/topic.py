"""SQLAlchemy models for topics."""

from __future__ import annotations

from datetime import datetime

from bson import ObjectId
from sqlalchemy import BigInteger, DateTime, ForeignKey, LargeBinary, Text
from sqlalchemy.orm import Mapped, mapped_column

from neko_blog.db.session import Base
from neko_blog.db.time import utcnow


def new_topic_id() -> bytes:
    """Return a fresh 12-byte, time-ordered topic identifier."""
    return ObjectId().binary


class Topic(Base):
    """Named discussion topic that posts can be filed under.

    Topics are keyed by a 12-byte ObjectId so identifiers sort by creation
    time; the API renders them as 24-character hex strings.
    """

    __tablename__ = "topic"

    id: Mapped[bytes] = mapped_column(LargeBinary(12), primary_key=True, default=new_topic_id)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    creator_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("user_info.id"), nullable=False
    )
    like_count: Mapped[int] = mapped_column(default=0, nullable=False)
    dislike_count: Mapped[int] = mapped_column(default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    @property
    def id_hex(self) -> str:
        return self.id.hex()

"""Engagement records linking an actor to a target."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import BigInteger, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from neko_blog.db.session import Base
from neko_blog.db.time import utcnow
from neko_blog.db.types import BigIntPK


class TargetKind(str, Enum):
    POST = "post"
    COMMENT = "comment"
    REPLY = "reply"
    TOPIC = "topic"
    USER = "user"


class EngagementKind(str, Enum):
    LIKE = "like"
    DISLIKE = "dislike"
    FAVOURITE = "favourite"
    FOLLOW = "follow"


# Engagement kinds each target accepts.
ALLOWED_KINDS: dict[TargetKind, frozenset[EngagementKind]] = {
    TargetKind.POST: frozenset({EngagementKind.LIKE, EngagementKind.FAVOURITE}),
    TargetKind.COMMENT: frozenset({EngagementKind.LIKE, EngagementKind.DISLIKE}),
    TargetKind.REPLY: frozenset({EngagementKind.LIKE, EngagementKind.DISLIKE}),
    TargetKind.TOPIC: frozenset({EngagementKind.LIKE, EngagementKind.DISLIKE}),
    TargetKind.USER: frozenset({EngagementKind.FOLLOW}),
}

# Kinds that cancel each other out on the same target.
OPPOSING_KIND: dict[EngagementKind, EngagementKind] = {
    EngagementKind.LIKE: EngagementKind.DISLIKE,
    EngagementKind.DISLIKE: EngagementKind.LIKE,
}


class Engagement(Base):
    """One active (actor, target, kind) fact.

    The unique constraint is the idempotency predicate: a second insert for
    the same triple affects zero rows. ``id`` preserves insertion order for
    "liked"/"favourited" views.
    """

    __tablename__ = "engagement"
    __table_args__ = (
        UniqueConstraint(
            "actor_id", "target_kind", "target_key", "kind", name="uq_engagement_actor_target_kind"
        ),
        Index("ix_engagement_target", "target_kind", "target_key", "kind"),
    )

    id: Mapped[int] = mapped_column(BigIntPK, primary_key=True, autoincrement=True)
    actor_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    target_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    # Decimal id for relational targets, 24-char hex for topics.
    target_key: Mapped[str] = mapped_column(String(32), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

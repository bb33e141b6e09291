"""Target references and existence checks."""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from bson import ObjectId
from bson.errors import InvalidId
from sqlalchemy import select
from sqlalchemy.orm import Session

from neko_blog.core.errors import ParameterError, TargetNotFoundError
from neko_blog.models import Comment, Post, Reply, Topic, User
from neko_blog.models.engagement import EngagementKind, TargetKind

__all__ = [
    "COUNTER_COLUMNS",
    "TARGET_MODELS",
    "ExistenceGuard",
    "TargetRef",
    "decode_topic_id",
]

TARGET_MODELS = {
    TargetKind.POST: Post,
    TargetKind.COMMENT: Comment,
    TargetKind.REPLY: Reply,
    TargetKind.TOPIC: Topic,
    TargetKind.USER: User,
}

# Denormalized counter column on the target row for each engagement kind.
COUNTER_COLUMNS = {
    EngagementKind.LIKE: "like_count",
    EngagementKind.DISLIKE: "dislike_count",
    EngagementKind.FAVOURITE: "favourite_count",
    EngagementKind.FOLLOW: "follower_count",
}


def decode_topic_id(value: str) -> bytes:
    """Decode a 24-character hex topic identifier.

    Raises:
        ParameterError: If ``value`` is not a valid identifier.
    """
    try:
        return ObjectId(value).binary
    except (InvalidId, TypeError) as err:
        raise ParameterError("invalid topic id") from err


@dataclass(frozen=True)
class TargetRef:
    """Polymorphic reference to an engageable entity."""

    kind: TargetKind
    id: int | bytes

    @property
    def key(self) -> str:
        """Canonical string form stored on engagement records."""
        if isinstance(self.id, bytes):
            return self.id.hex()
        return str(self.id)

    @property
    def model(self) -> type:
        return TARGET_MODELS[self.kind]

    @classmethod
    def post(cls, post_id: int) -> TargetRef:
        return cls(TargetKind.POST, post_id)

    @classmethod
    def comment(cls, comment_id: int) -> TargetRef:
        return cls(TargetKind.COMMENT, comment_id)

    @classmethod
    def reply(cls, reply_id: int) -> TargetRef:
        return cls(TargetKind.REPLY, reply_id)

    @classmethod
    def topic(cls, topic_id: bytes | str) -> TargetRef:
        if isinstance(topic_id, str):
            topic_id = decode_topic_id(topic_id)
        return cls(TargetKind.TOPIC, topic_id)

    @classmethod
    def user(cls, user_id: int) -> TargetRef:
        return cls(TargetKind.USER, user_id)


class ExistenceGuard:
    """Primary-key lookups confirming a target exists before it is mutated."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def exists(self, target: TargetRef, *, for_update: bool = False) -> bool:
        """Return True if the target row exists.

        With ``for_update`` the row stays locked until the transaction ends,
        so concurrent toggles on the same target run one after another.
        Storage failures propagate to the caller unchanged.
        """
        model = target.model
        stmt = select(model.id).where(model.id == target.id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.session.execute(stmt).first() is not None

    def require(self, target: TargetRef, *, for_update: bool = False) -> None:
        """Raise ``TargetNotFoundError`` unless the target exists."""
        if not self.exists(target, for_update=for_update):
            raise TargetNotFoundError(target.kind.value, target.key)

    def lock_users(self, user_ids: Iterable[int]) -> None:
        """Lock user rows in id order.

        A follow updates both the follower and the followed row; taking the
        locks in a fixed order keeps opposite follows from deadlocking.
        """
        ids = sorted(set(user_ids))
        self.session.execute(
            select(User.id).where(User.id.in_(ids)).order_by(User.id).with_for_update()
        ).all()

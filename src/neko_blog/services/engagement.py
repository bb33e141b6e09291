"""Engagement toggles: like, dislike, favourite and follow.

Every toggle runs as one database transaction. Clearing the opposing state
(a like removes a dislike and vice versa), inserting or deleting the record,
and moving the denormalized counters either all commit or all roll back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from neko_blog.core.errors import (
    AlreadyEngagedError,
    NotEngagedError,
    ParameterError,
)
from neko_blog.models.engagement import ALLOWED_KINDS, OPPOSING_KIND, EngagementKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.repositories.targets import COUNTER_COLUMNS, ExistenceGuard, TargetRef

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EngagementState:
    """Actor-relative view of a target's engagement state."""

    target: TargetRef
    actor_id: int
    active: dict[EngagementKind, bool] = field(default_factory=dict)
    counts: dict[EngagementKind, int] = field(default_factory=dict)

    def is_active(self, kind: EngagementKind) -> bool:
        return self.active.get(kind, False)


class ToggleService:
    """Applies engagement state transitions for one actor at a time."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.guard = ExistenceGuard(session)
        self.records = EngagementRepository(session)

    @staticmethod
    def _check_kind(target: TargetRef, kind: EngagementKind) -> None:
        if kind not in ALLOWED_KINDS[target.kind]:
            raise ParameterError(f"{target.kind.value} does not support {kind.value}")

    def _lock(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> None:
        """Lock the rows this toggle writes, failing if the target is gone.

        Same-actor toggles on one target then serialize on the target row, so
        a like and a dislike racing each other cannot both end up active.
        """
        if kind is EngagementKind.FOLLOW:
            self.guard.lock_users([actor_id, target.id])
        self.guard.require(target, for_update=True)

    def engage(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> EngagementState:
        """Turn ``kind`` on for (actor, target).

        Raises:
            TargetNotFoundError: If the target does not exist; nothing is written.
            AlreadyEngagedError: If the record already exists.
            ParameterError: If the target does not accept ``kind``.
        """
        self._check_kind(target, kind)
        if kind is EngagementKind.FOLLOW and target.id == actor_id:
            raise ParameterError("users cannot follow themselves")

        try:
            self._lock(actor_id, target, kind)

            opposing = OPPOSING_KIND.get(kind)
            if (
                opposing is not None
                and opposing in ALLOWED_KINDS[target.kind]
                and self.records.remove(actor_id, target, opposing)
            ):
                self.records.bump_counter(target, opposing, -1)

            try:
                inserted = self.records.add(actor_id, target, kind)
            except IntegrityError as err:
                raise AlreadyEngagedError(kind.value, target.kind.value) from err
            if not inserted:
                raise AlreadyEngagedError(kind.value, target.kind.value)

            self.records.bump_counter(target, kind, 1)
            if kind is EngagementKind.FOLLOW:
                self.records.bump_following(actor_id, 1)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.debug("user %s %s %s %s", actor_id, kind.value, target.kind.value, target.key)
        return self.status(actor_id, target)

    def disengage(self, actor_id: int, target: TargetRef, kind: EngagementKind) -> EngagementState:
        """Turn ``kind`` off for (actor, target).

        Raises:
            TargetNotFoundError: If the target does not exist.
            NotEngagedError: If there was no record to remove.
        """
        self._check_kind(target, kind)

        try:
            self._lock(actor_id, target, kind)
            if not self.records.remove(actor_id, target, kind):
                raise NotEngagedError(kind.value, target.kind.value)

            self.records.bump_counter(target, kind, -1)
            if kind is EngagementKind.FOLLOW:
                self.records.bump_following(actor_id, -1)

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.debug("user %s cancelled %s on %s %s", actor_id, kind.value, target.kind.value, target.key)
        return self.status(actor_id, target)

    def like(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.engage(actor_id, target, EngagementKind.LIKE)

    def unlike(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.disengage(actor_id, target, EngagementKind.LIKE)

    def dislike(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.engage(actor_id, target, EngagementKind.DISLIKE)

    def undislike(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.disengage(actor_id, target, EngagementKind.DISLIKE)

    def favourite(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.engage(actor_id, target, EngagementKind.FAVOURITE)

    def unfavourite(self, actor_id: int, target: TargetRef) -> EngagementState:
        return self.disengage(actor_id, target, EngagementKind.FAVOURITE)

    def follow(self, actor_id: int, followed_id: int) -> EngagementState:
        return self.engage(actor_id, TargetRef.user(followed_id), EngagementKind.FOLLOW)

    def unfollow(self, actor_id: int, followed_id: int) -> EngagementState:
        return self.disengage(actor_id, TargetRef.user(followed_id), EngagementKind.FOLLOW)

    def status(self, actor_id: int, target: TargetRef) -> EngagementState:
        """Return which engagements the actor holds on the target, with counters.

        Raises:
            TargetNotFoundError: If the target does not exist.
        """
        self.guard.require(target)
        kinds = sorted(ALLOWED_KINDS[target.kind], key=lambda k: k.value)
        active = {kind: self.records.contains(actor_id, target, kind) for kind in kinds}
        return EngagementState(
            target=target,
            actor_id=actor_id,
            active=active,
            counts=self.counters(target),
        )

    def counters(self, target: TargetRef) -> dict[EngagementKind, int]:
        """Read the denormalized counters stored on the target row."""
        model = target.model
        kinds = sorted(ALLOWED_KINDS[target.kind], key=lambda k: k.value)
        columns = [getattr(model, COUNTER_COLUMNS[kind]) for kind in kinds]
        row = self.session.execute(select(*columns).where(model.id == target.id)).one()
        return dict(zip(kinds, row, strict=True))

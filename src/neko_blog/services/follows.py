"""Follow graph between users."""

from __future__ import annotations

from sqlalchemy.orm import Session

from neko_blog.models.engagement import EngagementKind, TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.repositories.targets import ExistenceGuard, TargetRef
from neko_blog.services.engagement import EngagementState, ToggleService


class FollowService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.guard = ExistenceGuard(session)
        self.records = EngagementRepository(session)
        self.toggles = ToggleService(session)

    def follow(self, actor_id: int, user_id: int) -> EngagementState:
        return self.toggles.follow(actor_id, user_id)

    def unfollow(self, actor_id: int, user_id: int) -> EngagementState:
        return self.toggles.unfollow(actor_id, user_id)

    def status(self, actor_id: int, user_id: int) -> EngagementState:
        return self.toggles.status(actor_id, TargetRef.user(user_id))

    def following(self, user_id: int) -> list[int]:
        """Users followed by ``user_id``, most recently followed first."""
        self.guard.require(TargetRef.user(user_id))
        keys = self.records.list_target_keys(user_id, TargetKind.USER, EngagementKind.FOLLOW)
        return [int(key) for key in reversed(keys)]

    def followers(self, user_id: int) -> list[int]:
        """Users following ``user_id``, most recent follower first."""
        target = TargetRef.user(user_id)
        self.guard.require(target)
        return list(reversed(self.records.list_actor_ids(target, EngagementKind.FOLLOW)))

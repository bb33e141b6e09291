"""Engagement state schemas."""
from __future__ import annotations

from pydantic import BaseModel

from neko_blog.services.engagement import EngagementState


class EngagementStateResponse(BaseModel):
    """Caller-relative engagement flags plus the target's counters."""

    target_kind: str
    target_id: str
    uid: int
    active: dict[str, bool]
    counts: dict[str, int]

    @classmethod
    def from_state(cls, state: EngagementState) -> EngagementStateResponse:
        return cls(
            target_kind=state.target.kind.value,
            target_id=state.target.key,
            uid=state.actor_id,
            active={kind.value: flag for kind, flag in state.active.items()},
            counts={kind.value: count for kind, count in state.counts.items()},
        )

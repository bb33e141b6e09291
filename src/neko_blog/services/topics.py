"""Topic management and topic engagement."""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from neko_blog.core.errors import ParameterError, PermissionDeniedError, TargetNotFoundError
from neko_blog.core.settings import settings
from neko_blog.models import Post, Topic
from neko_blog.models.engagement import TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.repositories.targets import TargetRef, decode_topic_id
from neko_blog.schemas.topic import TopicCreate
from neko_blog.services.engagement import EngagementState, ToggleService

logger = logging.getLogger(__name__)


class TopicService:
    def __init__(self, session: Session) -> None:
        self.session = session
        self.records = EngagementRepository(session)
        self.toggles = ToggleService(session)

    def create_topic(self, creator_id: int, payload: TopicCreate) -> Topic:
        """Create a topic with a unique name.

        Raises:
            ParameterError: If a topic with the same name exists.
        """
        exists = self.session.execute(
            select(Topic.id).where(Topic.name == payload.name)
        ).first()
        if exists is not None:
            raise ParameterError("topic already exists")

        topic = Topic(name=payload.name, description=payload.description, creator_id=creator_id)
        try:
            self.session.add(topic)
            self.session.commit()
        except IntegrityError as err:
            self.session.rollback()
            raise ParameterError("topic already exists") from err
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(topic)
        logger.info("User %s created topic %s", creator_id, topic.id_hex)
        return topic

    def get_topic(self, topic_id: str) -> Topic:
        topic = self.session.get(Topic, decode_topic_id(topic_id))
        if topic is None:
            raise TargetNotFoundError(TargetKind.TOPIC.value, topic_id)
        return topic

    def post_count(self, topic_id: str) -> int:
        stmt = select(func.count()).select_from(Post).where(Post.topic_id == decode_topic_id(topic_id))
        return self.session.execute(stmt).scalar_one()

    def list_topics(self) -> list[str]:
        """Return all topic ids, newest first."""
        ids = self.session.execute(select(Topic.id).order_by(Topic.id.desc())).scalars()
        return [value.hex() for value in ids]

    def hot_topics(self, limit: int | None = None) -> list[str]:
        """Return the most liked topics, up to the configured maximum."""
        cap = settings.hot_topics_max
        size = cap if limit is None or limit <= 0 else min(limit, cap)
        stmt = select(Topic.id).order_by(Topic.like_count.desc(), Topic.id.desc()).limit(size)
        return [value.hex() for value in self.session.execute(stmt).scalars()]

    def delete_topic(self, actor_id: int, topic_id: str) -> None:
        """Delete a topic; its posts stay and lose their topic."""
        topic = self.get_topic(topic_id)
        if topic.creator_id != actor_id:
            raise PermissionDeniedError("only the creator can delete this topic")
        try:
            self.records.purge_target(TargetRef.topic(topic.id))
            self.session.execute(
                update(Post).where(Post.topic_id == topic.id).values(topic_id=None)
            )
            self.session.delete(topic)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("User %s deleted topic %s", actor_id, topic_id)

    def status(self, actor_id: int, topic_id: str) -> EngagementState:
        return self.toggles.status(actor_id, TargetRef.topic(topic_id))

    def like(self, actor_id: int, topic_id: str) -> EngagementState:
        return self.toggles.like(actor_id, TargetRef.topic(topic_id))

    def unlike(self, actor_id: int, topic_id: str) -> EngagementState:
        return self.toggles.unlike(actor_id, TargetRef.topic(topic_id))

    def dislike(self, actor_id: int, topic_id: str) -> EngagementState:
        return self.toggles.dislike(actor_id, TargetRef.topic(topic_id))

    def undislike(self, actor_id: int, topic_id: str) -> EngagementState:
        return self.toggles.undislike(actor_id, TargetRef.topic(topic_id))

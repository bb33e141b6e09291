"""Topic endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from neko_blog.api.responses import ok
from neko_blog.schemas.common import Envelope, IdList
from neko_blog.schemas.engagement import EngagementStateResponse
from neko_blog.schemas.topic import TopicCreate, TopicResponse
from neko_blog.services.topics import TopicService

from ..dependencies import CurrentUserDep, TopicServiceDep

router = APIRouter(prefix="/topics", tags=["topics"])


def _topic_detail(topics: TopicService, topic_id: str) -> TopicResponse:
    topic = topics.get_topic(topic_id)
    detail = TopicResponse.model_validate(topic)
    return detail.model_copy(update={"post_count": topics.post_count(topic_id)})


@router.get("")
def list_topics(topics: TopicServiceDep) -> Envelope:
    return ok(IdList(ids=topics.list_topics()))


@router.get("/hot")
def hot_topics(topics: TopicServiceDep, limit: Annotated[int | None, Query(ge=1)] = None) -> Envelope:
    return ok(IdList(ids=topics.hot_topics(limit)))


@router.post("")
def create_topic(payload: TopicCreate, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    topic = topics.create_topic(current_user.id, payload)
    return ok(TopicResponse.model_validate(topic))


@router.get("/{topic_id}")
def read_topic(topic_id: str, topics: TopicServiceDep) -> Envelope:
    return ok(_topic_detail(topics, topic_id))


@router.delete("/{topic_id}")
def delete_topic(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    topics.delete_topic(current_user.id, topic_id)
    return ok()


@router.get("/{topic_id}/status")
def topic_status(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(topics.status(current_user.id, topic_id)))


@router.post("/{topic_id}/like")
def like_topic(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(topics.like(current_user.id, topic_id)))


@router.delete("/{topic_id}/like")
def unlike_topic(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(topics.unlike(current_user.id, topic_id)))


@router.post("/{topic_id}/dislike")
def dislike_topic(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(topics.dislike(current_user.id, topic_id)))


@router.delete("/{topic_id}/dislike")
def undislike_topic(topic_id: str, current_user: CurrentUserDep, topics: TopicServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(topics.undislike(current_user.id, topic_id)))

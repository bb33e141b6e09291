"""Comment and reply endpoints."""

from fastapi import APIRouter

from neko_blog.api.responses import ok
from neko_blog.schemas.comment import (
    CommentCreate,
    CommentResponse,
    ContentUpdate,
    ReplyCreate,
    ReplyResponse,
)
from neko_blog.schemas.common import Envelope, IdList
from neko_blog.schemas.engagement import EngagementStateResponse

from ..dependencies import CommentServiceDep, CurrentUserDep, ReplyServiceDep

router = APIRouter(prefix="/comments", tags=["comments"])
replies_router = APIRouter(prefix="/replies", tags=["replies"])


@router.get("")
def list_comments(post_id: int, comments: CommentServiceDep) -> Envelope:
    return ok(IdList(ids=comments.list_comments(post_id)))


@router.post("")
def create_comment(
    payload: CommentCreate, current_user: CurrentUserDep, comments: CommentServiceDep
) -> Envelope:
    return ok(CommentResponse.model_validate(comments.create_comment(current_user, payload)))


@router.get("/{comment_id}")
def read_comment(comment_id: int, comments: CommentServiceDep) -> Envelope:
    return ok(CommentResponse.model_validate(comments.get_comment(comment_id)))


@router.put("/{comment_id}")
def update_comment(
    comment_id: int,
    payload: ContentUpdate,
    current_user: CurrentUserDep,
    comments: CommentServiceDep,
) -> Envelope:
    comment = comments.update_comment(current_user.id, comment_id, payload.content)
    return ok(CommentResponse.model_validate(comment))


@router.delete("/{comment_id}")
def delete_comment(
    comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep
) -> Envelope:
    comments.delete_comment(current_user.id, comment_id)
    return ok()


@router.get("/{comment_id}/status")
def comment_status(
    comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep
) -> Envelope:
    return ok(EngagementStateResponse.from_state(comments.status(current_user.id, comment_id)))


@router.post("/{comment_id}/like")
def like_comment(comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(comments.like(current_user.id, comment_id)))


@router.delete("/{comment_id}/like")
def unlike_comment(comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(comments.unlike(current_user.id, comment_id)))


@router.post("/{comment_id}/dislike")
def dislike_comment(comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(comments.dislike(current_user.id, comment_id)))


@router.delete("/{comment_id}/dislike")
def undislike_comment(
    comment_id: int, current_user: CurrentUserDep, comments: CommentServiceDep
) -> Envelope:
    return ok(EngagementStateResponse.from_state(comments.undislike(current_user.id, comment_id)))


@replies_router.get("")
def list_replies(comment_id: int, replies: ReplyServiceDep) -> Envelope:
    return ok(IdList(ids=replies.list_replies(comment_id)))


@replies_router.post("")
def create_reply(payload: ReplyCreate, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(ReplyResponse.model_validate(replies.create_reply(current_user.id, payload)))


@replies_router.get("/{reply_id}")
def read_reply(reply_id: int, replies: ReplyServiceDep) -> Envelope:
    return ok(ReplyResponse.model_validate(replies.get_reply(reply_id)))


@replies_router.put("/{reply_id}")
def update_reply(
    reply_id: int, payload: ContentUpdate, current_user: CurrentUserDep, replies: ReplyServiceDep
) -> Envelope:
    reply = replies.update_reply(current_user.id, reply_id, payload.content)
    return ok(ReplyResponse.model_validate(reply))


@replies_router.delete("/{reply_id}")
def delete_reply(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    replies.delete_reply(current_user.id, reply_id)
    return ok()


@replies_router.get("/{reply_id}/status")
def reply_status(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(replies.status(current_user.id, reply_id)))


@replies_router.post("/{reply_id}/like")
def like_reply(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(replies.like(current_user.id, reply_id)))


@replies_router.delete("/{reply_id}/like")
def unlike_reply(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(replies.unlike(current_user.id, reply_id)))


@replies_router.post("/{reply_id}/dislike")
def dislike_reply(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(replies.dislike(current_user.id, reply_id)))


@replies_router.delete("/{reply_id}/dislike")
def undislike_reply(reply_id: int, current_user: CurrentUserDep, replies: ReplyServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(replies.undislike(current_user.id, reply_id)))

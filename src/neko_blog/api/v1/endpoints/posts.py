"""Post-related endpoints for the Neko Blog API."""

from typing import Annotated

from fastapi import APIRouter, Query, Request, UploadFile

from neko_blog.api.responses import ok
from neko_blog.schemas.common import Envelope, IdList
from neko_blog.schemas.engagement import EngagementStateResponse
from neko_blog.schemas.post import PostCreate, PostListType, PostResponse, StagedImage

from ..dependencies import CurrentUserDep, PostServiceDep

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("")
def list_posts(
    posts: PostServiceDep,
    list_type: Annotated[PostListType, Query(alias="type")] = PostListType.ALL,
    uid: int | None = None,
    topic_id: str | None = None,
    length: Annotated[int | None, Query(alias="len")] = None,
    before: Annotated[int | None, Query(alias="from")] = None,
) -> Envelope:
    """List post ids, most recent first.

    ``from`` is the last id of the previous page; ``len`` is capped at the
    page limit. The liked and favourited lists follow engagement order, so
    their page continues right after ``from`` in that order.
    """
    ids = posts.list_posts(list_type, uid=uid, topic_id=topic_id, length=length, before=before)
    return ok(IdList(ids=ids))


@router.get("/following")
def following_feed(
    current_user: CurrentUserDep,
    posts: PostServiceDep,
    length: Annotated[int | None, Query(alias="len")] = None,
    before: Annotated[int | None, Query(alias="from")] = None,
) -> Envelope:
    ids = posts.following_feed(current_user.id, length=length, before=before)
    return ok(IdList(ids=ids))


@router.post("/images")
def upload_image(image: UploadFile, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    """Stage an image; pass the returned id in ``images`` when creating a post."""
    image_id = posts.upload_image(image.file, image.content_type)
    return ok(StagedImage(id=image_id))


@router.post("")
def create_post(
    payload: PostCreate,
    request: Request,
    current_user: CurrentUserDep,
    posts: PostServiceDep,
) -> Envelope:
    ip_address = request.client.host if request.client else None
    post = posts.create_post(current_user.id, payload, ip_address=ip_address)
    return ok(PostResponse.model_validate(post))


@router.get("/{post_id}")
def read_post(post_id: int, posts: PostServiceDep) -> Envelope:
    return ok(PostResponse.model_validate(posts.get_post(post_id)))


@router.delete("/{post_id}")
def delete_post(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    posts.delete_post(current_user.id, post_id)
    return ok()


@router.get("/{post_id}/status")
def post_status(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(posts.status(current_user.id, post_id)))


@router.post("/{post_id}/like")
def like_post(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(posts.like(current_user.id, post_id)))


@router.delete("/{post_id}/like")
def unlike_post(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(posts.unlike(current_user.id, post_id)))


@router.post("/{post_id}/favourite")
def favourite_post(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(posts.favourite(current_user.id, post_id)))


@router.delete("/{post_id}/favourite")
def unfavourite_post(post_id: int, current_user: CurrentUserDep, posts: PostServiceDep) -> Envelope:
    return ok(EngagementStateResponse.from_state(posts.unfavourite(current_user.id, post_id)))

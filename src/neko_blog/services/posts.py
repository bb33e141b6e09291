"""Post creation, lookup, deletion and list assembly."""

from __future__ import annotations

import logging
from typing import BinaryIO

from sqlalchemy import select
from sqlalchemy.orm import Session

from neko_blog.core.errors import ParameterError, PermissionDeniedError, TargetNotFoundError
from neko_blog.core.settings import settings
from neko_blog.models import Post
from neko_blog.models.engagement import EngagementKind, TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.repositories.targets import ExistenceGuard, TargetRef, decode_topic_id
from neko_blog.schemas.post import PostCreate, PostListType
from neko_blog.services import cascade
from neko_blog.services.cache import CacheService
from neko_blog.services.engagement import EngagementState, ToggleService
from neko_blog.services.images import ImageStore
from neko_blog.services.listing import clamp_length, most_recent_first
from neko_blog.services.search import SearchIndexClient

logger = logging.getLogger(__name__)

_ENGAGEMENT_LISTS = {
    PostListType.LIKED: EngagementKind.LIKE,
    PostListType.FAVOURITED: EngagementKind.FAVOURITE,
}


class PostService:
    """Operations on posts for a single request."""

    def __init__(
        self,
        session: Session,
        cache: CacheService,
        search: SearchIndexClient | None = None,
        images: ImageStore | None = None,
    ) -> None:
        self.session = session
        self.cache = cache
        self.search = search
        self.images = images or ImageStore()
        self.guard = ExistenceGuard(session)
        self.records = EngagementRepository(session)
        self.toggles = ToggleService(session)

    def upload_image(self, source: BinaryIO, content_type: str | None) -> str:
        """Stage an uploaded image and return the id a post can reference."""
        filename = self.images.save_upload(source, content_type)
        try:
            return self.cache.stage_image(filename)
        except Exception:
            self.images.remove_staged(filename)
            raise

    def create_post(
        self, author_id: int, payload: PostCreate, ip_address: str | None = None
    ) -> Post:
        """Create a post, promoting its staged images.

        Raises:
            ParameterError: If an image is not staged, there are too many
                images, or the topic or reposted post does not exist.
        """
        if len(payload.images) > settings.post_max_images:
            raise ParameterError(f"a post can carry at most {settings.post_max_images} images")
        if len(set(payload.images)) != len(payload.images):
            raise ParameterError("duplicate image id")

        topic_id = decode_topic_id(payload.topic_id) if payload.topic_id else None
        if topic_id is not None:
            self.guard.require(TargetRef.topic(topic_id))
        if payload.parent_post_id is not None:
            self.guard.require(TargetRef.post(payload.parent_post_id))

        filenames: list[str] = []
        for image_id in payload.images:
            filename = self.cache.staged_filename(image_id)
            if filename is None or not self.cache.is_image_available(image_id):
                raise ParameterError(f"image {image_id} is not available")
            filenames.append(filename)

        promoted: list[str] = []
        try:
            for filename in filenames:
                self.images.promote(filename)
                promoted.append(filename)
        except Exception:
            for filename in promoted:
                self.images.remove_stored(filename)
            raise

        post = Post(
            author_id=author_id,
            parent_post_id=payload.parent_post_id,
            topic_id=topic_id,
            ip_address=ip_address,
            title=payload.title,
            content=payload.content,
            images=filenames,
        )
        try:
            self.session.add(post)
            self.session.commit()
        except Exception:
            self.session.rollback()
            for filename in promoted:
                self.images.remove_stored(filename)
            raise
        self.session.refresh(post)

        for image_id in payload.images:
            self.cache.consume_image(image_id)
        if self.search is not None:
            self.search.index_post(post.id, post.title, post.content)

        logger.info("User %s created post %s", author_id, post.id)
        return post

    def get_post(self, post_id: int) -> Post:
        post = self.session.get(Post, post_id)
        if post is None:
            raise TargetNotFoundError(TargetKind.POST.value, post_id)
        return post

    def delete_post(self, actor_id: int, post_id: int) -> None:
        """Delete a post with its comments, replies, engagement records and image files."""
        post = self.get_post(post_id)
        if post.author_id != actor_id:
            raise PermissionDeniedError("only the author can delete this post")
        images = list(post.images or [])
        try:
            cascade.delete_post(self.session, post_id)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        for filename in images:
            self.images.remove_stored(filename)
        if self.search is not None:
            self.search.remove_post(post_id)
        logger.info("User %s deleted post %s", actor_id, post_id)

    def list_posts(
        self,
        list_type: PostListType,
        *,
        uid: int | None = None,
        topic_id: str | None = None,
        length: int | None = None,
        before: int | None = None,
    ) -> list[int]:
        """Return post ids for one of the list views, most recent first.

        ``before`` is an exclusive cursor: the last id of the previous page.
        Id-ordered views return ids below it; the liked and favourited views
        continue right after it in engagement order.
        """
        size = clamp_length(length)

        if list_type in _ENGAGEMENT_LISTS:
            if uid is None:
                raise ParameterError("uid is required for this list")
            self.guard.require(TargetRef.user(uid))
            keys = self.records.list_target_keys(uid, TargetKind.POST, _ENGAGEMENT_LISTS[list_type])
            after = str(before) if before is not None else None
            return [int(key) for key in most_recent_first(keys, size, after=after)]

        stmt = select(Post.id)
        if list_type is PostListType.USER:
            if uid is None:
                raise ParameterError("uid is required for this list")
            self.guard.require(TargetRef.user(uid))
            stmt = stmt.where(Post.author_id == uid)
        elif list_type is PostListType.TOPIC:
            if not topic_id:
                raise ParameterError("topic_id is required for this list")
            topic = TargetRef.topic(topic_id)
            self.guard.require(topic)
            stmt = stmt.where(Post.topic_id == topic.id)

        if before is not None:
            stmt = stmt.where(Post.id < before)
        return list(self.session.execute(stmt.order_by(Post.id.desc()).limit(size)).scalars())

    def following_feed(
        self, actor_id: int, *, length: int | None = None, before: int | None = None
    ) -> list[int]:
        """Return ids of posts written by users the actor follows, newest first."""
        followed = [
            int(key)
            for key in self.records.list_target_keys(actor_id, TargetKind.USER, EngagementKind.FOLLOW)
        ]
        if not followed:
            return []
        stmt = select(Post.id).where(Post.author_id.in_(followed))
        if before is not None:
            stmt = stmt.where(Post.id < before)
        stmt = stmt.order_by(Post.id.desc()).limit(clamp_length(length))
        return list(self.session.execute(stmt).scalars())

    def status(self, actor_id: int, post_id: int) -> EngagementState:
        return self.toggles.status(actor_id, TargetRef.post(post_id))

    def like(self, actor_id: int, post_id: int) -> EngagementState:
        return self.toggles.like(actor_id, TargetRef.post(post_id))

    def unlike(self, actor_id: int, post_id: int) -> EngagementState:
        return self.toggles.unlike(actor_id, TargetRef.post(post_id))

    def favourite(self, actor_id: int, post_id: int) -> EngagementState:
        return self.toggles.favourite(actor_id, TargetRef.post(post_id))

    def unfavourite(self, actor_id: int, post_id: int) -> EngagementState:
        return self.toggles.unfavourite(actor_id, TargetRef.post(post_id))

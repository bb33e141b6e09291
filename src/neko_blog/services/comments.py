"""Comments and replies attached to posts."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from neko_blog.core.errors import ParameterError, PermissionDeniedError, TargetNotFoundError
from neko_blog.models import Comment, Reply, User
from neko_blog.models.engagement import TargetKind
from neko_blog.repositories.targets import ExistenceGuard, TargetRef
from neko_blog.schemas.comment import CommentCreate, ReplyCreate
from neko_blog.services import cascade
from neko_blog.services.engagement import EngagementState, ToggleService

logger = logging.getLogger(__name__)


class CommentService:
    """Operations on top-level comments."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.guard = ExistenceGuard(session)
        self.toggles = ToggleService(session)

    def create_comment(self, author: User, payload: CommentCreate) -> Comment:
        self.guard.require(TargetRef.post(payload.post_id))
        comment = Comment(
            post_id=payload.post_id,
            author_id=author.id,
            username=author.username,
            content=payload.content,
        )
        try:
            self.session.add(comment)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(comment)
        logger.info("User %s commented on post %s", author.id, payload.post_id)
        return comment

    def get_comment(self, comment_id: int) -> Comment:
        comment = self.session.get(Comment, comment_id)
        if comment is None:
            raise TargetNotFoundError(TargetKind.COMMENT.value, comment_id)
        return comment

    def list_comments(self, post_id: int) -> list[int]:
        """Return ids of the post's comments, newest first."""
        self.guard.require(TargetRef.post(post_id))
        stmt = select(Comment.id).where(Comment.post_id == post_id).order_by(Comment.id.desc())
        return list(self.session.execute(stmt).scalars())

    def update_comment(self, actor_id: int, comment_id: int, content: str) -> Comment:
        comment = self.get_comment(comment_id)
        if comment.author_id != actor_id:
            raise PermissionDeniedError("only the author can edit this comment")
        comment.content = content
        self.session.commit()
        self.session.refresh(comment)
        return comment

    def delete_comment(self, actor_id: int, comment_id: int) -> None:
        comment = self.get_comment(comment_id)
        if comment.author_id != actor_id:
            raise PermissionDeniedError("only the author can delete this comment")
        try:
            cascade.delete_comments(self.session, [comment_id])
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        logger.info("User %s deleted comment %s", actor_id, comment_id)

    def status(self, actor_id: int, comment_id: int) -> EngagementState:
        return self.toggles.status(actor_id, TargetRef.comment(comment_id))

    def like(self, actor_id: int, comment_id: int) -> EngagementState:
        return self.toggles.like(actor_id, TargetRef.comment(comment_id))

    def unlike(self, actor_id: int, comment_id: int) -> EngagementState:
        return self.toggles.unlike(actor_id, TargetRef.comment(comment_id))

    def dislike(self, actor_id: int, comment_id: int) -> EngagementState:
        return self.toggles.dislike(actor_id, TargetRef.comment(comment_id))

    def undislike(self, actor_id: int, comment_id: int) -> EngagementState:
        return self.toggles.undislike(actor_id, TargetRef.comment(comment_id))


class ReplyService:
    """Operations on replies under a comment."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self.guard = ExistenceGuard(session)
        self.toggles = ToggleService(session)

    def create_reply(self, author_id: int, payload: ReplyCreate) -> Reply:
        """Create a reply, optionally addressed to another reply.

        Raises:
            TargetNotFoundError: If the comment or the answered reply is missing.
            ParameterError: If the answered reply belongs to another comment.
        """
        self.guard.require(TargetRef.comment(payload.comment_id))

        parent_uid = None
        if payload.parent_reply_id is not None:
            parent = self.get_reply(payload.parent_reply_id)
            if parent.comment_id != payload.comment_id:
                raise ParameterError("parent reply belongs to another comment")
            parent_uid = parent.author_id

        reply = Reply(
            comment_id=payload.comment_id,
            parent_reply_id=payload.parent_reply_id,
            parent_reply_uid=parent_uid,
            author_id=author_id,
            content=payload.content,
        )
        try:
            self.session.add(reply)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        self.session.refresh(reply)
        return reply

    def get_reply(self, reply_id: int) -> Reply:
        reply = self.session.get(Reply, reply_id)
        if reply is None:
            raise TargetNotFoundError(TargetKind.REPLY.value, reply_id)
        return reply

    def list_replies(self, comment_id: int) -> list[int]:
        """Return ids of the comment's replies, newest first."""
        self.guard.require(TargetRef.comment(comment_id))
        stmt = select(Reply.id).where(Reply.comment_id == comment_id).order_by(Reply.id.desc())
        return list(self.session.execute(stmt).scalars())

    def update_reply(self, actor_id: int, reply_id: int, content: str) -> Reply:
        reply = self.get_reply(reply_id)
        if reply.author_id != actor_id:
            raise PermissionDeniedError("only the author can edit this reply")
        reply.content = content
        self.session.commit()
        self.session.refresh(reply)
        return reply

    def delete_reply(self, actor_id: int, reply_id: int) -> None:
        reply = self.get_reply(reply_id)
        if reply.author_id != actor_id:
            raise PermissionDeniedError("only the author can delete this reply")
        try:
            cascade.delete_replies(self.session, [reply_id])
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def status(self, actor_id: int, reply_id: int) -> EngagementState:
        return self.toggles.status(actor_id, TargetRef.reply(reply_id))

    def like(self, actor_id: int, reply_id: int) -> EngagementState:
        return self.toggles.like(actor_id, TargetRef.reply(reply_id))

    def unlike(self, actor_id: int, reply_id: int) -> EngagementState:
        return self.toggles.unlike(actor_id, TargetRef.reply(reply_id))

    def dislike(self, actor_id: int, reply_id: int) -> EngagementState:
        return self.toggles.dislike(actor_id, TargetRef.reply(reply_id))

    def undislike(self, actor_id: int, reply_id: int) -> EngagementState:
        return self.toggles.undislike(actor_id, TargetRef.reply(reply_id))

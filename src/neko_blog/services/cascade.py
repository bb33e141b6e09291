"""Deletion of content together with everything that hangs off it.

Each helper only issues statements; the calling service owns the
transaction and commits or rolls back the whole cascade.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from neko_blog.models import Comment, Post, Reply
from neko_blog.models.engagement import TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository


def _keys(ids: Iterable[int]) -> list[str]:
    return [str(value) for value in ids]


def delete_replies(session: Session, reply_ids: list[int]) -> None:
    if not reply_ids:
        return
    EngagementRepository(session).purge_targets(TargetKind.REPLY, _keys(reply_ids))
    session.execute(
        update(Reply)
        .where(Reply.parent_reply_id.in_(reply_ids))
        .values(parent_reply_id=None)
    )
    session.execute(delete(Reply).where(Reply.id.in_(reply_ids)))


def delete_comments(session: Session, comment_ids: list[int]) -> None:
    if not comment_ids:
        return
    reply_ids = list(
        session.execute(select(Reply.id).where(Reply.comment_id.in_(comment_ids))).scalars()
    )
    delete_replies(session, reply_ids)
    EngagementRepository(session).purge_targets(TargetKind.COMMENT, _keys(comment_ids))
    session.execute(delete(Comment).where(Comment.id.in_(comment_ids)))


def delete_post(session: Session, post_id: int) -> None:
    comment_ids = list(
        session.execute(select(Comment.id).where(Comment.post_id == post_id)).scalars()
    )
    delete_comments(session, comment_ids)
    EngagementRepository(session).purge_targets(TargetKind.POST, [str(post_id)])
    # Reposts survive their original.
    session.execute(
        update(Post).where(Post.parent_post_id == post_id).values(parent_post_id=None)
    )
    session.execute(delete(Post).where(Post.id == post_id))

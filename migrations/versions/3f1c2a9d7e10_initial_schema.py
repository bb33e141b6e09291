"""initial schema

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

BigIntPK = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _counter(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), nullable=False, server_default="0")


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    """Create users, content tables and engagement records."""
    op.create_table(
        "user_info",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("nickname", sa.Text(), nullable=True),
        sa.Column("password_hash", sa.Text(), nullable=False),
        _counter("follower_count"),
        _counter("following_count"),
        _created_at(),
        sa.UniqueConstraint("username"),
    )
    op.create_table(
        "topic",
        sa.Column("id", sa.LargeBinary(length=12), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("creator_id", sa.BigInteger(), sa.ForeignKey("user_info.id"), nullable=False),
        _counter("like_count"),
        _counter("dislike_count"),
        _created_at(),
        sa.UniqueConstraint("name"),
    )
    op.create_table(
        "post_info",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("author_id", sa.BigInteger(), sa.ForeignKey("user_info.id"), nullable=False),
        sa.Column("parent_post_id", sa.BigInteger(), sa.ForeignKey("post_info.id"), nullable=True),
        sa.Column("topic_id", sa.LargeBinary(length=12), sa.ForeignKey("topic.id"), nullable=True),
        sa.Column("ip_address", sa.Text(), nullable=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        _counter("like_count"),
        _counter("favourite_count"),
        _created_at(),
    )
    op.create_index("ix_post_info_author_id", "post_info", ["author_id"])
    op.create_index("ix_post_info_topic_id", "post_info", ["topic_id"])

    op.create_table(
        "comment_info",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("post_id", sa.BigInteger(), sa.ForeignKey("post_info.id"), nullable=False),
        sa.Column("author_id", sa.BigInteger(), sa.ForeignKey("user_info.id"), nullable=False),
        sa.Column("username", sa.Text(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _counter("like_count"),
        _counter("dislike_count"),
        _created_at(),
    )
    op.create_index("ix_comment_info_post_id", "comment_info", ["post_id"])

    op.create_table(
        "reply_info",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("comment_id", sa.BigInteger(), sa.ForeignKey("comment_info.id"), nullable=False),
        sa.Column("parent_reply_id", sa.BigInteger(), sa.ForeignKey("reply_info.id"), nullable=True),
        sa.Column("parent_reply_uid", sa.BigInteger(), nullable=True),
        sa.Column("author_id", sa.BigInteger(), sa.ForeignKey("user_info.id"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _counter("like_count"),
        _counter("dislike_count"),
        _created_at(),
    )
    op.create_index("ix_reply_info_comment_id", "reply_info", ["comment_id"])

    op.create_table(
        "engagement",
        sa.Column("id", BigIntPK, primary_key=True, autoincrement=True),
        sa.Column("actor_id", sa.BigInteger(), nullable=False),
        sa.Column("target_kind", sa.String(length=16), nullable=False),
        sa.Column("target_key", sa.String(length=32), nullable=False),
        sa.Column("kind", sa.String(length=16), nullable=False),
        _created_at(),
        sa.UniqueConstraint(
            "actor_id", "target_kind", "target_key", "kind", name="uq_engagement_actor_target_kind"
        ),
    )
    op.create_index("ix_engagement_target", "engagement", ["target_kind", "target_key", "kind"])


def downgrade() -> None:
    """Drop every table created by this revision."""
    op.drop_index("ix_engagement_target", table_name="engagement")
    op.drop_table("engagement")
    op.drop_index("ix_reply_info_comment_id", table_name="reply_info")
    op.drop_table("reply_info")
    op.drop_index("ix_comment_info_post_id", table_name="comment_info")
    op.drop_table("comment_info")
    op.drop_index("ix_post_info_topic_id", table_name="post_info")
    op.drop_index("ix_post_info_author_id", table_name="post_info")
    op.drop_table("post_info")
    op.drop_table("topic")
    op.drop_table("user_info")

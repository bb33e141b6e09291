# tests/services/test_concurrency.py
"""Concurrent toggles against a file-backed database."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from neko_blog.core.errors import AlreadyEngagedError
from neko_blog.core.security import hash_password
from neko_blog.db.session import Base, build_engine
from neko_blog.models import Comment, Engagement, EngagementKind, Post, User
from neko_blog.repositories.targets import TargetRef
from neko_blog.services.engagement import ToggleService

ACTORS = 8


@pytest.fixture()
def file_sessions(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'concurrency.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    finally:
        engine.dispose()


@pytest.fixture()
def seeded(file_sessions):
    with file_sessions() as session:
        users = [
            User(username=f"fan{i}", password_hash=hash_password("secret"))
            for i in range(ACTORS)
        ]
        session.add_all(users)
        session.flush()
        post = Post(author_id=users[0].id, title="popular", content="like me", images=[])
        session.add(post)
        session.commit()
        return [user.id for user in users], post.id


def _like(file_sessions, actor_id: int, post_id: int) -> str:
    with file_sessions() as session:
        try:
            ToggleService(session).like(actor_id, TargetRef.post(post_id))
        except AlreadyEngagedError:
            return "already"
    return "liked"


def test_concurrent_likes_by_distinct_actors_are_all_counted(file_sessions, seeded) -> None:
    actor_ids, post_id = seeded

    with ThreadPoolExecutor(max_workers=ACTORS) as pool:
        results = list(pool.map(lambda uid: _like(file_sessions, uid, post_id), actor_ids))

    assert results == ["liked"] * ACTORS
    with file_sessions() as session:
        assert session.get(Post, post_id).like_count == ACTORS
        records = session.execute(
            select(func.count(func.distinct(Engagement.actor_id))).where(Engagement.kind == "like")
        ).scalar_one()
        assert records == ACTORS


def test_concurrent_duplicate_likes_count_once(file_sessions, seeded) -> None:
    actor_ids, post_id = seeded
    actor = actor_ids[1]

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: _like(file_sessions, actor, post_id), range(4)))

    assert sorted(results) == ["already", "already", "already", "liked"]
    with file_sessions() as session:
        assert session.get(Post, post_id).like_count == 1


def test_racing_like_and_dislike_leave_one_active(file_sessions, seeded) -> None:
    actor_ids, post_id = seeded
    actor = actor_ids[2]
    with file_sessions() as session:
        session.add(Comment(post_id=post_id, author_id=actor, username="fan2", content="hm"))
        session.commit()
        comment_id = session.execute(select(Comment.id)).scalar_one()

    def toggle(kind: EngagementKind) -> str:
        with file_sessions() as session:
            toggles = ToggleService(session)
            target = TargetRef.comment(comment_id)
            action = toggles.like if kind is EngagementKind.LIKE else toggles.dislike
            try:
                action(actor, target)
            except AlreadyEngagedError:
                return "already"
        return kind.value

    kinds = [EngagementKind.LIKE, EngagementKind.DISLIKE] * 6
    with ThreadPoolExecutor(max_workers=6) as pool:
        list(pool.map(toggle, kinds))

    with file_sessions() as session:
        comment = session.get(Comment, comment_id)
        active = session.execute(
            select(Engagement.kind).where(
                Engagement.actor_id == actor,
                Engagement.target_kind == "comment",
            )
        ).scalars().all()
        assert len(active) == 1
        assert comment.like_count + comment.dislike_count == 1
        assert (comment.like_count == 1) == (active == ["like"])

# tests/services/test_content_services.py
"""Tests for post, comment, reply and topic services."""

import io
from unittest.mock import MagicMock

import pytest
from sqlalchemy import func, select

from neko_blog.core.errors import ParameterError, PermissionDeniedError, TargetNotFoundError
from neko_blog.models import Comment, Engagement, Post, Reply
from neko_blog.schemas.comment import CommentCreate, ReplyCreate
from neko_blog.schemas.post import PostCreate, PostListType
from neko_blog.schemas.topic import TopicCreate
from neko_blog.services.comments import CommentService, ReplyService
from neko_blog.services.follows import FollowService
from neko_blog.services.posts import PostService
from neko_blog.services.topics import TopicService


def _make_posts(db_session, author, count: int) -> list[int]:
    posts = [Post(author_id=author.id, title=f"p{i}", content="body", images=[]) for i in range(count)]
    db_session.add_all(posts)
    db_session.commit()
    return [post.id for post in posts]


def test_liked_list_is_most_recent_first(db_session, cache, test_user) -> None:
    service = PostService(db_session, cache)
    p1, p2, p3 = _make_posts(db_session, test_user, 3)
    for post_id in (p1, p2, p3):
        service.like(test_user.id, post_id)

    assert service.list_posts(PostListType.LIKED, uid=test_user.id) == [p3, p2, p1]
    assert service.list_posts(PostListType.LIKED, uid=test_user.id, length=2) == [p3, p2]
    assert service.list_posts(PostListType.LIKED, uid=test_user.id, length=2, before=p2) == [p1]
    service.unlike(test_user.id, p2)
    assert service.list_posts(PostListType.LIKED, uid=test_user.id, before=p2) == []


def test_favourited_list_requires_uid(db_session, cache) -> None:
    with pytest.raises(ParameterError):
        PostService(db_session, cache).list_posts(PostListType.FAVOURITED)


def test_all_list_paginates_with_cursor_and_cap(db_session, cache, test_user) -> None:
    service = PostService(db_session, cache)
    ids = _make_posts(db_session, test_user, 12)

    first_page = service.list_posts(PostListType.ALL, length=50)
    assert first_page == sorted(ids, reverse=True)[:10]

    second_page = service.list_posts(PostListType.ALL, before=first_page[-1])
    assert second_page == sorted(ids, reverse=True)[10:]


def test_user_and_topic_lists(db_session, cache, test_user, other_user, test_topic) -> None:
    service = PostService(db_session, cache)
    mine = _make_posts(db_session, test_user, 2)
    theirs = _make_posts(db_session, other_user, 1)
    tagged = Post(author_id=other_user.id, title="cat", content="meow", images=[], topic_id=test_topic.id)
    db_session.add(tagged)
    db_session.commit()

    assert service.list_posts(PostListType.USER, uid=test_user.id) == mine[::-1]
    assert service.list_posts(PostListType.TOPIC, topic_id=test_topic.id_hex) == [tagged.id]
    assert theirs[0] in service.list_posts(PostListType.ALL)


def test_following_feed(db_session, cache, test_user, other_user, user_factory) -> None:
    stranger = user_factory()
    service = PostService(db_session, cache)
    followed_posts = _make_posts(db_session, other_user, 2)
    _make_posts(db_session, stranger, 2)

    assert service.following_feed(test_user.id) == []
    FollowService(db_session).follow(test_user.id, other_user.id)
    assert service.following_feed(test_user.id) == followed_posts[::-1]


def test_create_post_consumes_staged_images_and_indexes(
    db_session, cache, staged_image, image_dirs, test_user, test_topic
) -> None:
    search = MagicMock()
    service = PostService(db_session, cache, search)
    image_id = staged_image("kitten.jpg")

    post = service.create_post(
        test_user.id,
        PostCreate(title="Kitten", content="Look", images=[image_id], topic_id=test_topic.id_hex),
        ip_address="127.0.0.1",
    )

    assert post.images == ["kitten.jpg"]
    assert post.topic_id == test_topic.id
    assert cache.is_image_available(image_id) is False
    search.index_post.assert_called_once_with(post.id, "Kitten", "Look")
    assert image_dirs.stored_path("kitten.jpg").exists()
    assert [name for _, name in cache.read_cleanup_queue()] == ["kitten.jpg"]


def test_create_post_rejects_unknown_image_and_topic(db_session, cache, test_user) -> None:
    service = PostService(db_session, cache)

    with pytest.raises(ParameterError):
        service.create_post(test_user.id, PostCreate(title="t", content="c", images=["nope"]))
    with pytest.raises(TargetNotFoundError):
        service.create_post(
            test_user.id, PostCreate(title="t", content="c", topic_id="0123456789abcdef01234567")
        )
    with pytest.raises(ParameterError):
        service.create_post(test_user.id, PostCreate(title="t", content="c", topic_id="not-hex"))
    assert db_session.execute(select(func.count()).select_from(Post)).scalar_one() == 0


def test_create_post_limits_image_count(db_session, cache, test_user) -> None:
    images = [cache.stage_image(f"{i}.png") for i in range(10)]

    with pytest.raises(ParameterError):
        PostService(db_session, cache).create_post(
            test_user.id, PostCreate(title="t", content="c", images=images)
        )


def test_create_post_fails_when_staged_file_is_missing(db_session, cache, staged_image, image_dirs, test_user) -> None:
    kept = staged_image("kept.png")
    lost = staged_image("lost.png")
    image_dirs.staged_path("lost.png").unlink()

    with pytest.raises(ParameterError):
        PostService(db_session, cache).create_post(
            test_user.id, PostCreate(title="t", content="c", images=[kept, lost])
        )

    assert db_session.execute(select(func.count()).select_from(Post)).scalar_one() == 0
    assert not image_dirs.stored_path("kept.png").exists()
    assert cache.is_image_available(kept) is True


def test_delete_post_removes_stored_images(db_session, cache, staged_image, image_dirs, test_user) -> None:
    service = PostService(db_session, cache)
    post = service.create_post(
        test_user.id, PostCreate(title="t", content="c", images=[staged_image("gone.png")])
    )
    assert image_dirs.stored_path("gone.png").exists()

    service.delete_post(test_user.id, post.id)

    assert not image_dirs.stored_path("gone.png").exists()


def test_upload_image_stages_file(db_session, cache, image_dirs) -> None:
    service = PostService(db_session, cache)

    image_id = service.upload_image(io.BytesIO(b"GIF89a"), "image/gif")

    filename = cache.staged_filename(image_id)
    assert filename.endswith(".gif")
    assert image_dirs.staged_path(filename).read_bytes() == b"GIF89a"
    with pytest.raises(ParameterError):
        service.upload_image(io.BytesIO(b""), "image/png")
    with pytest.raises(ParameterError):
        service.upload_image(io.BytesIO(b"x"), "application/pdf")


def test_upload_image_enforces_size_limit(db_session, cache, image_dirs, monkeypatch) -> None:
    from neko_blog.core.settings import settings

    monkeypatch.setattr(settings, "image_max_bytes", 4)
    with pytest.raises(ParameterError):
        PostService(db_session, cache).upload_image(io.BytesIO(b"12345"), "image/png")
    assert list(image_dirs.staging_dir.iterdir()) == []


def test_delete_post_cascades(db_session, cache, test_user, other_user, test_post, test_comment, test_reply) -> None:
    service = PostService(db_session, cache)
    service.like(other_user.id, test_post.id)
    CommentService(db_session).like(other_user.id, test_comment.id)
    ReplyService(db_session).dislike(test_user.id, test_reply.id)
    post_id = test_post.id

    with pytest.raises(PermissionDeniedError):
        service.delete_post(other_user.id, post_id)

    service.delete_post(test_user.id, post_id)

    assert db_session.get(Post, post_id) is None
    assert db_session.execute(select(func.count()).select_from(Comment)).scalar_one() == 0
    assert db_session.execute(select(func.count()).select_from(Reply)).scalar_one() == 0
    assert db_session.execute(select(func.count()).select_from(Engagement)).scalar_one() == 0


def test_reply_to_reply_records_parent_author(db_session, test_user, test_comment, test_reply) -> None:
    service = ReplyService(db_session)

    reply = service.create_reply(
        test_user.id,
        ReplyCreate(comment_id=test_comment.id, parent_reply_id=test_reply.id, content="thanks"),
    )

    assert reply.parent_reply_uid == test_reply.author_id
    assert service.list_replies(test_comment.id) == [reply.id, test_reply.id]


def test_reply_parent_must_share_comment(db_session, test_user, test_post, test_reply) -> None:
    other_comment = CommentService(db_session).create_comment(
        test_user, CommentCreate(post_id=test_post.id, content="another")
    )

    with pytest.raises(ParameterError):
        ReplyService(db_session).create_reply(
            test_user.id,
            ReplyCreate(comment_id=other_comment.id, parent_reply_id=test_reply.id, content="x"),
        )


def test_comment_update_is_author_only(db_session, test_user, other_user, test_comment) -> None:
    service = CommentService(db_session)

    with pytest.raises(PermissionDeniedError):
        service.update_comment(other_user.id, test_comment.id, "hijacked")
    assert service.update_comment(test_user.id, test_comment.id, "edited").content == "edited"


def test_topic_names_are_unique(db_session, test_user) -> None:
    service = TopicService(db_session)
    service.create_topic(test_user.id, TopicCreate(name="dogs"))

    with pytest.raises(ParameterError):
        service.create_topic(test_user.id, TopicCreate(name="dogs"))


def test_hot_topics_order_by_likes(db_session, test_user, other_user) -> None:
    service = TopicService(db_session)
    quiet = service.create_topic(test_user.id, TopicCreate(name="quiet"))
    loud = service.create_topic(test_user.id, TopicCreate(name="loud"))
    service.like(test_user.id, loud.id_hex)
    service.like(other_user.id, loud.id_hex)
    service.like(other_user.id, quiet.id_hex)

    assert service.hot_topics() == [loud.id_hex, quiet.id_hex]
    assert service.hot_topics(limit=1) == [loud.id_hex]
    assert service.list_topics() == [loud.id_hex, quiet.id_hex]


def test_delete_topic_detaches_posts(db_session, test_user, other_user, test_topic) -> None:
    post = Post(author_id=test_user.id, title="t", content="c", images=[], topic_id=test_topic.id)
    db_session.add(post)
    db_session.commit()
    topic_hex = test_topic.id_hex
    service = TopicService(db_session)
    service.dislike(other_user.id, topic_hex)

    with pytest.raises(PermissionDeniedError):
        service.delete_topic(other_user.id, topic_hex)
    service.delete_topic(test_user.id, topic_hex)

    db_session.refresh(post)
    assert post.topic_id is None
    assert db_session.execute(select(func.count()).select_from(Engagement)).scalar_one() == 0


def test_followers_and_following_are_most_recent_first(db_session, test_user, user_factory) -> None:
    service = FollowService(db_session)
    a, b = user_factory(), user_factory()
    service.follow(a.id, test_user.id)
    service.follow(b.id, test_user.id)
    service.follow(test_user.id, a.id)
    service.follow(test_user.id, b.id)

    assert service.followers(test_user.id) == [b.id, a.id]
    assert service.following(test_user.id) == [b.id, a.id]

# tests/services/test_engagement_repo.py
"""Tests for the engagement record store."""

from datetime import UTC, datetime

from sqlalchemy import select

from neko_blog.models import Engagement, EngagementKind, TargetKind
from neko_blog.repositories.engagement_repo import EngagementRepository
from neko_blog.repositories.targets import ExistenceGuard, TargetRef


def test_add_is_insert_if_absent(db_session, test_user, test_post) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.post(test_post.id)

    assert records.add(test_user.id, target, EngagementKind.LIKE) is True
    assert records.add(test_user.id, target, EngagementKind.LIKE) is False
    assert records.count_by_target(target, EngagementKind.LIKE) == 1


def test_remove_reports_missing_record(db_session, test_user, test_post) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.post(test_post.id)

    assert records.remove(test_user.id, target, EngagementKind.FAVOURITE) is False
    records.add(test_user.id, target, EngagementKind.FAVOURITE)
    assert records.remove(test_user.id, target, EngagementKind.FAVOURITE) is True
    assert records.contains(test_user.id, target, EngagementKind.FAVOURITE) is False


def test_upsert_overwrites_timestamp(db_session, test_user, test_post) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.post(test_post.id)
    first = datetime(2024, 1, 1, tzinfo=UTC)
    second = datetime(2024, 6, 1, tzinfo=UTC)

    records.upsert(test_user.id, target, EngagementKind.LIKE, first)
    records.upsert(test_user.id, target, EngagementKind.LIKE, second)
    db_session.commit()

    stamps = db_session.execute(select(Engagement.created_at)).scalars().all()
    assert len(stamps) == 1
    assert stamps[0].replace(tzinfo=UTC) == second


def test_list_target_keys_is_oldest_first(db_session, test_user, user_factory) -> None:
    records = EngagementRepository(db_session)
    followed = [user_factory() for _ in range(3)]
    for user in followed:
        records.add(test_user.id, TargetRef.user(user.id), EngagementKind.FOLLOW)

    keys = records.list_target_keys(test_user.id, TargetKind.USER, EngagementKind.FOLLOW)
    assert keys == [str(user.id) for user in followed]


def test_topic_records_use_hex_keys(db_session, test_user, test_topic) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.topic(test_topic.id)

    records.add(test_user.id, target, EngagementKind.LIKE)

    keys = records.list_target_keys(test_user.id, TargetKind.TOPIC, EngagementKind.LIKE)
    assert keys == [test_topic.id.hex()]
    assert TargetRef.topic(keys[0]) == target


def test_recount_repairs_drifted_counters(db_session, test_user, other_user, test_post) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.post(test_post.id)
    records.add(test_user.id, target, EngagementKind.LIKE)
    records.add(other_user.id, target, EngagementKind.LIKE)
    test_post.like_count = 7
    db_session.commit()

    assert records.recount(TargetKind.POST, EngagementKind.LIKE) == 1
    db_session.commit()
    db_session.refresh(test_post)
    assert test_post.like_count == 2
    assert records.recount(TargetKind.POST, EngagementKind.LIKE) == 0


def test_recount_matches_topic_hex_keys(db_session, test_user, other_user, test_topic) -> None:
    records = EngagementRepository(db_session)
    target = TargetRef.topic(test_topic.id)
    records.add(test_user.id, target, EngagementKind.DISLIKE)
    records.add(other_user.id, target, EngagementKind.DISLIKE)
    db_session.commit()

    assert records.recount(TargetKind.TOPIC, EngagementKind.DISLIKE) == 1
    db_session.commit()
    db_session.refresh(test_topic)
    assert test_topic.dislike_count == 2
    assert records.recount(TargetKind.TOPIC, EngagementKind.LIKE) == 0


def test_recount_following(db_session, test_user, other_user) -> None:
    records = EngagementRepository(db_session)
    records.add(test_user.id, TargetRef.user(other_user.id), EngagementKind.FOLLOW)
    other_user.following_count = 4
    db_session.commit()

    assert records.recount_following() == 2
    db_session.commit()
    db_session.refresh(test_user)
    db_session.refresh(other_user)
    assert test_user.following_count == 1
    assert other_user.following_count == 0


def test_orphaned_keys_finds_records_of_deleted_targets(db_session, test_user, test_post) -> None:
    records = EngagementRepository(db_session)
    records.add(test_user.id, TargetRef.post(test_post.id), EngagementKind.LIKE)
    records.add(test_user.id, TargetRef.post(424242), EngagementKind.LIKE)

    assert records.orphaned_keys(TargetKind.POST) == {"424242"}
    assert records.purge_targets(TargetKind.POST, {"424242"}) == 1
    assert records.orphaned_keys(TargetKind.POST) == set()


def test_existence_guard(db_session, test_post, test_topic) -> None:
    guard = ExistenceGuard(db_session)

    assert guard.exists(TargetRef.post(test_post.id)) is True
    assert guard.exists(TargetRef.post(test_post.id + 1)) is False
    assert guard.exists(TargetRef.topic(test_topic.id_hex)) is True

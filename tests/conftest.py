# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MAINTENANCE_ENABLED", "false")

from neko_blog.core.security import create_access_token, hash_password
from neko_blog.core.settings import Settings, settings
from neko_blog.db.session import Base, create_tables, drop_tables
from neko_blog.db.session import get_db as app_get_session
from neko_blog.main import app as fastapi_app
from neko_blog.models import Comment, Post, Reply, Topic, User
from neko_blog.services.cache import CacheService, get_cache_service, reset_local_cache
from neko_blog.services.images import ImageStore

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct-horse"

_USER_COUNTER = count(1)
_TEST_SETTINGS_INSTANCE = Settings()


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(engine)
    try:
        yield engine
    finally:
        drop_tables(engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Services commit, so every test starts from empty tables.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def clean_cache() -> Iterator[None]:
    reset_local_cache()
    yield
    reset_local_cache()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def cache() -> CacheService:
    """In-process cache service shared with the API."""
    return get_cache_service()


@pytest.fixture(autouse=True)
def image_dirs(tmp_path, monkeypatch) -> ImageStore:
    """Point image staging and storage at per-test directories."""
    monkeypatch.setattr(settings, "image_staging_dir", str(tmp_path / "staging"))
    monkeypatch.setattr(settings, "image_storage_dir", str(tmp_path / "images"))
    return ImageStore()


@pytest.fixture()
def staged_image(cache: CacheService, image_dirs: ImageStore) -> Callable[..., str]:
    """Return a callable writing a staged image file and registering it."""

    def _stage(filename: str, content: bytes = b"\x89PNG fake", **kwargs) -> str:
        image_dirs.staging_dir.mkdir(parents=True, exist_ok=True)
        image_dirs.staged_path(filename).write_bytes(content)
        return cache.stage_image(filename, **kwargs)

    return _stage


def _make_user(db_session: Session, username: str | None = None) -> User:
    username = username or f"user{next(_USER_COUNTER)}"
    user = User(username=username, nickname=username, password_hash=hash_password(TEST_PASSWORD))
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


def _auth_headers_for(user: User) -> dict[str, str]:
    token, _ = create_access_token(user.id)
    get_cache_service().push_token(user.id, token, 3600)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _make_user(db_session, "neko")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _make_user(db_session, "tama")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return _auth_headers_for(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return _auth_headers_for(other_user)


@pytest.fixture()
def test_topic(db_session: Session, test_user: User) -> Topic:
    topic = Topic(name="cats", description="All about cats", creator_id=test_user.id)
    db_session.add(topic)
    db_session.commit()
    db_session.refresh(topic)
    return topic


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Post:
    """Create a baseline post for tests."""
    post = Post(author_id=test_user.id, title="Hello", content="Test post content", images=[])
    db_session.add(post)
    db_session.commit()
    db_session.refresh(post)
    return post


@pytest.fixture()
def test_comment(db_session: Session, test_post: Post, test_user: User) -> Comment:
    comment = Comment(
        post_id=test_post.id,
        author_id=test_user.id,
        username=test_user.username,
        content="First!",
    )
    db_session.add(comment)
    db_session.commit()
    db_session.refresh(comment)
    return comment


@pytest.fixture()
def test_reply(db_session: Session, test_comment: Comment, other_user: User) -> Reply:
    reply = Reply(comment_id=test_comment.id, author_id=other_user.id, content="Welcome")
    db_session.add(reply)
    db_session.commit()
    db_session.refresh(reply)
    return reply


@pytest.fixture()
def user_factory(db_session: Session) -> Callable[..., User]:
    """Return a callable persisting extra users."""

    def _factory(username: str | None = None) -> User:
        return _make_user(db_session, username)

    return _factory


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Return a callable issuing bearer headers for any user."""
    return _auth_headers_for

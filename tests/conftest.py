# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from dataclasses import dataclass
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("PUBLIC_API_KEY", "test-public-key")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from vibesphere.core.settings import Settings  # noqa: E402
from vibesphere.db.session import Base  # noqa: E402
from vibesphere.db.session import get_db as app_get_session  # noqa: E402
from vibesphere.main import app as fastapi_app  # noqa: E402
from vibesphere.models import Poll, Post  # noqa: E402
from vibesphere.services import auth as auth_service  # noqa: E402
from vibesphere.services import content  # noqa: E402
from vibesphere.services import realtime  # noqa: E402
from vibesphere.services.auth import ActorContext  # noqa: E402

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "correct horse battery"

_USER_COUNTER = count(1)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:  # pragma: no cover
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


@pytest.fixture()
def engine() -> Generator[Engine, None, None]:
    # Fresh in-memory database per test with foreign keys enforced, so deletion
    # order mistakes surface as integrity errors.
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_foreign_keys)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


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
def fresh_change_feed() -> Iterator[None]:
    """Give every test its own change feed."""
    realtime._ChangeFeedSingleton._instance = None
    yield
    realtime._ChangeFeedSingleton._instance = None


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance aligned with runtime configuration."""
    return Settings()


@dataclass
class SignedInUser:
    """A registered user holding a live session."""

    user_id: str
    username: str
    email: str
    password: str
    actor: ActorContext
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture()
def make_user(db_session: Session) -> Callable[..., SignedInUser]:
    """Register and sign in a new user."""

    def _make_user(username: str | None = None, *, email: str | None = None) -> SignedInUser:
        number = next(_USER_COUNTER)
        email = email or f"user{number}@example.com"
        profile = auth_service.register(
            db_session,
            email=email,
            password=TEST_PASSWORD,
            username=username or f"user{number}",
        )
        result = auth_service.sign_in(
            db_session, username_or_email=email, password=TEST_PASSWORD
        )
        return SignedInUser(
            user_id=profile.id,
            username=profile.username,
            email=email,
            password=TEST_PASSWORD,
            actor=result.actor,
            token=result.access_token,
        )

    return _make_user


@pytest.fixture()
def alice(make_user: Callable[..., SignedInUser]) -> SignedInUser:
    return make_user("alice")


@pytest.fixture()
def bob(make_user: Callable[..., SignedInUser]) -> SignedInUser:
    return make_user("bob")


@pytest.fixture()
def carol(make_user: Callable[..., SignedInUser]) -> SignedInUser:
    return make_user("carol")


@pytest.fixture()
def color_poll(db_session: Session, alice: SignedInUser) -> Poll:
    """Alice's "Best color?" poll with Red and Blue."""
    return content.create_poll(
        db_session,
        alice.actor,
        question="Best color?",
        options=["Red", "Blue"],
    )


@pytest.fixture()
def alice_post(db_session: Session, alice: SignedInUser) -> Post:
    return content.create_post(db_session, alice.actor, content="Hello from Alice")

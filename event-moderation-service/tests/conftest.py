# tests/conftest.py

import os

# Settings are read at import time, so the test environment has to be in
# place before anything from `app` is imported.
TEST_DATABASE_URL = os.environ.setdefault(
    "TEST_DATABASE_URL", "sqlite:///./event_moderation_test.db"
)
os.environ.setdefault("ENV", "local")
os.environ.setdefault("DATABASE_URL_LOCAL", TEST_DATABASE_URL)
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("KAFKA_ENABLED", "false")

import pytest
from unittest.mock import MagicMock
from starlette.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy_utils import create_database, database_exists, drop_database

from app.main import app
from app.api import deps
from app.db.session import get_db
from app.models import Base, Event, EventStatusHistory


# --- Test Database Setup ---
connect_args = (
    {"check_same_thread": False} if TEST_DATABASE_URL.startswith("sqlite") else {}
)
engine = create_engine(TEST_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    if database_exists(engine.url):
        drop_database(engine.url)
    create_database(engine.url)
    Base.metadata.create_all(bind=engine)
    yield
    engine.dispose()
    drop_database(engine.url)


@pytest.fixture(scope="function")
def db_session():
    session = TestingSessionLocal()
    yield session
    session.rollback()
    session.query(EventStatusHistory).delete()
    session.query(Event).delete()
    session.commit()
    session.close()


# --- Mock Dependencies Setup ---
class MockTokenPayload:
    def __init__(self, sub="user_123", role="organizer"):
        self.sub = sub
        self.role = role


@pytest.fixture(scope="function")
def current_user():
    """The caller the API sees; tests switch identity by mutating it."""
    return MockTokenPayload()


@pytest.fixture(scope="function")
def notifier():
    return MagicMock()


# --- Test Client Fixtures ---
@pytest.fixture(scope="function")
def test_client(db_session, current_user, notifier):
    """
    TestClient over the test database with authentication and the Kafka
    notifier mocked out.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_current_user] = lambda: current_user
    app.dependency_overrides[deps.get_moderation_notifier] = lambda: notifier

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def unauthenticated_client(db_session):
    """TestClient with the real JWT dependency in place."""

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[deps.get_moderation_notifier] = lambda: MagicMock()

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()

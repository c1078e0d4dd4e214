"""Test configuration and fixtures for the SoundAlchemy backend tests."""

import os
import sys
import pathlib
from contextlib import contextmanager
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

BACKEND_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

# Set test environment before importing backend modules
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SESSION_SECRET_KEY"] = "test_secret_key"
os.environ["TESTING_MODE"] = "True"
os.environ["CACHE_ENABLED"] = "False"
os.environ["SLACK_TOKEN"] = ""
os.environ["ATOMIC_FRIEND_WRITES"] = "True"
os.environ["NOTIFY_ON_ACCEPT"] = "True"
os.environ["NOTIFY_ON_DECLINE"] = "False"
os.environ["RECONCILE_INTERVAL_SECONDS"] = "0"
os.environ["CHANGE_FEED_POLL_SECONDS"] = "0"


@pytest.fixture(autouse=True)
def test_engine():
    """Create a test database engine."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    # Ensure models are imported so tables are registered in SQLModel.metadata
    import models  # noqa: F401

    SQLModel.metadata.create_all(engine)
    return engine


@pytest.fixture
def test_session(test_engine):
    """Create a test database session."""
    with Session(test_engine) as session:
        yield session


@pytest.fixture
def session_factory(test_session):
    """A get_db replacement handing out the test session"""

    @contextmanager
    def _factory():
        yield test_session

    return _factory


@pytest.fixture
def feed(session_factory):
    """A private change feed, so tests don't share subscribers"""
    from services.feed import ChangeFeed

    return ChangeFeed(session_factory=session_factory)


@pytest.fixture
def manager(test_session, feed):
    from services.friendship import RequestLifecycleManager

    return RequestLifecycleManager(test_session, feed=feed, atomic=True)


@pytest.fixture
def accounts(test_session):
    """Four musicians: u1..u4"""
    from models.account import Account

    people = [
        Account(id="u1", name="Alice", email="alice@example.com", username="alice"),
        Account(id="u2", name="Bob", email="bob@example.com", username="bob"),
        Account(id="u3", name="Carol", email="carol@example.com", username="carol"),
        Account(id="u4", name="Dave", email="dave@example.com", username="dave"),
    ]
    for account in people:
        test_session.add(account)
    test_session.commit()
    return people


@pytest.fixture
def override_get_session(test_session):
    """Override the get_session dependency for testing."""

    def _override_get_session():
        yield test_session

    return _override_get_session


@pytest.fixture
def test_app(override_get_session, feed):
    """Create a test FastAPI application."""
    # Patch update_database to skip migrations in tests
    with patch("app.update_database"):
        from app import create_app

        app = create_app()
    from models.common import get_session
    from routes.deps import get_feed

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_feed] = lambda: feed
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app):
    """Create a test client."""
    with patch("app.update_database"), TestClient(test_app) as client:
        yield client


@pytest.fixture
def act_as(test_app):
    """Switch the account the requests are made with"""
    from routes.deps import get_current_user

    def _act_as(account):
        test_app.dependency_overrides[get_current_user] = lambda: account

    return _act_as


@pytest.fixture(autouse=True)
def reset_database_state(test_session):
    """Reset database state after each test."""
    yield
    if test_session.in_transaction():
        test_session.rollback()

    from sqlalchemy import text

    for table in reversed(SQLModel.metadata.sorted_tables):
        test_session.execute(text(f"DELETE FROM {table.name}"))
    test_session.commit()

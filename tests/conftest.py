"""Pytest configuration and fixtures."""

import os

# Settings are read once at import time; the app under test must not reach
# Postgres or Firebase during startup.
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["IDENTITY_PROVIDER"] = "local"
os.environ["ENVIRONMENT"] = "development"

from typing import Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.api.v1.dependencies import get_identity_provider, get_view_cache
from app.auth.local_identity import LocalIdentityProvider
from app.config import Settings
from app.core.view_cache import ViewCache
from app.db.base import Base
from app.db.session import get_db
from app.repositories.todo_repository import TodoRepository
from app.repositories.user_repository import UserRepository
from app.schemas.user import UserCreate
from app.services.todo_service import TodoService
from app.services.user_service import UserService


# In-memory SQLite for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TEST_SECRET_KEY = "test-secret-key"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database session for each test."""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def settings():
    """Settings for local development: plain-HTTP cookies, non-atomic toggle."""
    return Settings(
        ENVIRONMENT="development",
        DATABASE_URL=SQLALCHEMY_DATABASE_URL,
        IDENTITY_PROVIDER="local",
        SECRET_KEY=TEST_SECRET_KEY,
    )


@pytest.fixture(scope="function")
def identity_provider():
    """In-memory identity provider standing in for Firebase."""
    return LocalIdentityProvider(TEST_SECRET_KEY)


@pytest.fixture(scope="function")
def view_cache():
    return ViewCache(maxsize=128, ttl=60)


@pytest.fixture
def user_repository(db_session):
    return UserRepository(db_session)


@pytest.fixture
def todo_repository(db_session):
    return TodoRepository(db_session)


@pytest.fixture
def user_service(user_repository):
    return UserService(user_repository)


@pytest.fixture
def todo_service(todo_repository):
    return TodoService(todo_repository)


@pytest.fixture
def make_user(user_repository):
    """Factory creating a user row directly through the repository."""

    def _make_user(firebase_uid: str, email: Optional[str] = None):
        result = user_repository.create(
            UserCreate(firebase_uid=firebase_uid, email=email or f"{firebase_uid}@example.com")
        )
        assert result.is_ok()
        return result.value

    return _make_user


@pytest.fixture(scope="function")
def client(db_session, identity_provider, view_cache, settings):
    """Create a test client with overridden dependencies."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_identity_provider] = lambda: identity_provider
    app.dependency_overrides[get_view_cache] = lambda: view_cache
    app_settings = app.state.settings
    app.state.settings = settings

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
    app.state.settings = app_settings


@pytest.fixture
def sign_up(client, identity_provider):
    """Sign a user up through the API; the session cookie stays on the client."""

    def _sign_up(firebase_uid: str = "uid-alice", email: str = "alice@example.com"):
        response = client.post(
            "/api/v1/auth/sign-up",
            json={
                "id_token": identity_provider.create_id_token(firebase_uid, email),
                "firebase_uid": firebase_uid,
                "email": email,
                "display_name": "Test User",
            },
        )
        assert response.status_code == 200
        assert response.json()["success"] is True

        me = client.get("/api/v1/auth/me")
        assert me.status_code == 200
        return me.json()

    return _sign_up


@pytest.fixture
def test_user(sign_up):
    """A signed-in user."""
    return sign_up()

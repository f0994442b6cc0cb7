"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import itertools

import httpx
import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from failsafe.config import ContentConfig, FailsafeConfig
from failsafe.database.models import Base, User
from failsafe.services.content_service import ContentService
from failsafe.services.relay import ConnectionRegistry


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all FailSafe tables.

    Uses StaticPool so every thread shares the same in-memory database
    (routes reach it through ``asyncio.to_thread``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """A plain session; tests commit when they need to."""
    with Session(db_engine, expire_on_commit=False) as session:
        yield session
        session.rollback()


_user_seq = itertools.count(1)


def make_user(session: Session, **overrides) -> User:
    """Insert a user with sensible defaults.  Usable from any test module."""
    fields = {
        "username": f"Tester_{next(_user_seq)}",
        "category": "Job Search",
        "goal": "Land a job",
        "failures": [],
    }
    fields.update(overrides)
    user = User(**fields)
    session.add(user)
    session.commit()
    return user


# ---------------------------------------------------------------------------
# Content service doubles
# ---------------------------------------------------------------------------
def failing_content_service() -> ContentService:
    """A content service whose remote endpoint always answers 503."""
    transport = httpx.MockTransport(lambda request: httpx.Response(503))
    return ContentService(ContentConfig(), api_key="test-key", transport=transport)


def replying_content_service(text: str) -> ContentService:
    """A content service whose remote endpoint always answers *text*."""

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200, json={"choices": [{"message": {"content": text}}]}
        )

    return ContentService(
        ContentConfig(), api_key="test-key", transport=httpx.MockTransport(handler)
    )


@pytest.fixture
def content_service() -> ContentService:
    """Default: no API key, so every capability returns fallback copy."""
    return ContentService(ContentConfig())


@pytest.fixture
def app_config() -> FailsafeConfig:
    return FailsafeConfig()


@pytest.fixture
def client(db_engine, content_service, app_config):
    """A FastAPI TestClient wired to the in-memory database."""
    from fastapi.testclient import TestClient

    from failsafe.api.deps import get_config, get_content_service, get_engine, get_registry
    from failsafe.api.main import app

    registry = ConnectionRegistry()
    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_config] = lambda: app_config
    app.dependency_overrides[get_content_service] = lambda: content_service
    app.dependency_overrides[get_registry] = lambda: registry
    try:
        yield TestClient(app, raise_server_exceptions=False)
    finally:
        app.dependency_overrides.clear()

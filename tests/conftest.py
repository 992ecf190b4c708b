#!/usr/bin/env python3
"""
Shared pytest fixtures: per-test SQLite databases, wired services and an
HTTP client with the session factory swapped in.
"""

import os
import sys

# Settings are read at import time; point them at SQLite before app is imported
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("BOOKING_TIMEOUT_SECONDS", "10")

# Add the project root to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import pytest
import pytest_asyncio
import sqlalchemy as sa
from fastapi.testclient import TestClient
from sqlalchemy.pool import NullPool

from app.api.deps import get_session_factory
from app.crud.appointment import AppointmentStore
from app.crud.user import UserDirectory
from app.db.base import Base
from app.db.session import build_engine, build_session_factory
from app.main import app
from app.schemas.user import UserCreate
from app.services.booking import BookingService
from app.services.users import UserService


def _create_schema(db_path) -> None:
    # plain sqlite3 engine: no event loop needed for DDL
    sync_engine = sa.create_engine(f"sqlite:///{db_path}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()


@pytest.fixture
def database_url(tmp_path):
    """A fresh on-disk SQLite database with the schema applied."""
    db_path = tmp_path / "booking.db"
    _create_schema(db_path)
    return f"sqlite+aiosqlite:///{db_path}"


@pytest_asyncio.fixture
async def engine(database_url):
    # NullPool: every session gets its own connection, as concurrent requests would
    eng = build_engine(database_url, poolclass=NullPool)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def user_service(session_factory):
    return UserService(session_factory, UserDirectory())


@pytest.fixture
def booking_service(session_factory):
    return BookingService(session_factory, UserDirectory(), AppointmentStore(), timeout_seconds=10)


@pytest_asyncio.fixture
async def people(user_service):
    """Three stored users keyed by first name."""
    created = {}
    for name in ("Alice", "Bob", "Carol"):
        created[name.lower()] = await user_service.create_user(
            UserCreate(name=name, email=f"{name.lower()}@example.com", role="member")
        )
    return created


@pytest.fixture
def client(database_url):
    """HTTP client over the real app, backed by this test's database."""
    # NullPool keeps connections from outliving TestClient's event loop
    http_engine = build_engine(database_url, poolclass=NullPool)
    app.dependency_overrides[get_session_factory] = lambda: build_session_factory(http_engine)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


# Pytest configuration hooks
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line("markers", "unit: Pure unit tests with in-memory fakes")
    config.addinivalue_line("markers", "integration: Tests against a real SQLite database")
    config.addinivalue_line("markers", "slow: Long-running tests")

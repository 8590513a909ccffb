"""
Test configuration and fixtures for the relay test suite.

Environment variables are set before any relay module is imported so that
configuration loaded at import time already points at the test database
and upload directory.
"""

import os
import tempfile

os.environ["LOGGING_ENVIRONMENT"] = "unit_test"
os.environ["LOGGING_DISABLE_LOGGING"] = "true"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ.setdefault("UPLOAD_DIRECTORY", tempfile.mkdtemp(prefix="relay-uploads-"))

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from relay.app.factory import create_app  # noqa: E402
from relay.async_persistence import AsyncPersistenceLayer  # noqa: E402
from relay.config import reset_config  # noqa: E402
from relay.database import DatabaseManager  # noqa: E402
from relay.realtime.connection_manager import ConnectionManager  # noqa: E402
from relay.services.user_directory import UserDirectory  # noqa: E402


@pytest.fixture(autouse=True)
def reset_config_cache():
    """Reset the configuration cache around each test."""
    reset_config()
    yield
    reset_config()


@pytest.fixture
async def database_manager():
    """A DatabaseManager on a private in-memory SQLite database with tables created."""
    manager = DatabaseManager("sqlite+aiosqlite://")
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest.fixture
def persistence(database_manager):
    return AsyncPersistenceLayer(database_manager)


@pytest.fixture
def user_directory(persistence):
    return UserDirectory(persistence)


@pytest.fixture
def connection_manager():
    return ConnectionManager()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Point the blob store and static mount at a per-test directory."""
    directory = tmp_path / "uploads"
    monkeypatch.setenv("UPLOAD_DIRECTORY", str(directory))
    return directory


@pytest.fixture
def app(upload_dir):
    return create_app()


@pytest.fixture
def client(app):
    """TestClient with the application lifespan (and container) running."""
    with TestClient(app) as test_client:
        yield test_client

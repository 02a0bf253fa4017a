"""Pytest shared fixtures: an app per test backed by a temporary SQLite file."""
import pathlib
import sys

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from api import create_app
from models import storage as _storage

TEST_PASSWORD = "Password123"


@pytest.fixture()
def app(tmp_path):
    app = create_app(
        "testing",
        overrides={"DATABASE_URL": f"sqlite:///{tmp_path / 'test.db'}", "LOG_LEVEL": "WARNING"},
    )
    yield app
    _storage.close()
    _storage.engine.dispose()


@pytest.fixture()
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture()
def storage(app):
    return _storage


@pytest.fixture()
def auth_service(app):
    return app.extensions["auth_service"]


@pytest.fixture()
def registered_user(auth_service):
    """A registered, active user; returns (sanitized user, password)."""
    user = auth_service.register(
        {"email": "alice@example.com", "password": TEST_PASSWORD, "name": "Alice"}
    )
    return user, TEST_PASSWORD

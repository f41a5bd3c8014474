import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("JWT_SECRET", "test-secret-not-for-production")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

from roommate_finder.config import Settings  # noqa: E402  (import after env vars are set)
from roommate_finder.main import create_application  # noqa: E402
from roommate_finder.models.user import User  # noqa: E402
from roommate_finder.services.auth_service import create_access_token, hash_password  # noqa: E402

TEST_PASSWORD = "secret123"
BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.fixture()
def settings():
    return Settings(
        _env_file=None,
        jwt_secret="test-secret-not-for-production",
        jwt_expires_in_minutes=60,
        bcrypt_rounds=4,
        mongodb_database="roommate_finder_test",
    )


@pytest.fixture()
def app(settings):
    """A fresh app backed by its own in-memory MongoDB."""
    return create_application(settings, client_factory=lambda url: AsyncMongoMockClient())


@pytest.fixture()
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def seed_user(client, settings):
    """
    Insert a user straight into the store and return (user, token).
    `minutes` offsets updated_at from a fixed base so ordering is deterministic.
    """
    password_hash = hash_password(TEST_PASSWORD, rounds=4)

    def _seed(email, minutes=0, **fields):
        stamp = BASE_TIME + timedelta(minutes=minutes)
        user = User(
            name=fields.pop("name", email.split("@")[0]),
            email=email,
            password_hash=password_hash,
            created_at=stamp,
            updated_at=stamp,
            **fields,
        )

        async def _insert():
            await user.insert()

        client.portal.call(_insert)
        return user, create_access_token(user.id, settings)

    return _seed


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


def register(client, name="Alex Doe", email="alex@example.com", password=TEST_PASSWORD):
    return client.post("/api/users/register", json={"name": name, "email": email, "password": password})

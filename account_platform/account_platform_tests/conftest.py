import pytest
from fastapi.testclient import TestClient

from account_platform.account_platform.account_service.config import Settings
from account_platform.account_platform.account_service.main import create_app

TEST_SECRET = "test-secret-key-change-this-in-production"


@pytest.fixture
def settings():
    # low hash rounds keep the suite fast; the hash format is the same
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        JWT_SECRET=TEST_SECRET,
        PASSWORD_HASH_ROUNDS=1000,
        LOG_DIR=None,
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def register(client, email, password="secret1"):
    return client.post("/auth/register", json={"email": email, "password": password})


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}

"""Internal failures reach clients as 500 {error, message} without their cause."""
import uuid
from unittest.mock import Mock

from sqlalchemy import text

from account_platform.account_platform.account_service.auth import PasswordHasher, TokenService
from account_platform.account_platform.account_service.db import create_session_factory
from account_platform.account_platform.account_service.errors import (
    DuplicateEmail,
    HashError,
    StoreError,
    TokenIssueError,
)
from account_platform.account_platform.account_service.repository import AccountStore
from account_platform.account_platform.account_service.service import AuthFlow

from .conftest import TEST_SECRET, register


def unique_email():
    return f"user_{uuid.uuid4().hex[:8]}@example.com"


def replace_flow(app, store=None, hasher=None, tokens=None):
    """Rebuild the app's AuthFlow with some collaborators swapped out."""
    app.state.auth_flow = AuthFlow(
        store or AccountStore(create_session_factory(app.state.engine)),
        hasher or PasswordHasher(rounds=1000),
        tokens or TokenService(TEST_SECRET),
    )


def test_database_failure_is_database_error(client, app):
    with app.state.engine.begin() as conn:
        conn.execute(text("DROP TABLE users"))

    response = client.post("/auth/login", json={"email": unique_email(), "password": "secret1"})

    assert response.status_code == 500
    assert response.json() == {"error": "database_error", "message": "Failed to find user"}
    assert "no such table" not in response.text


def test_store_error_message_hides_underlying_cause(client, app):
    store = Mock(spec=AccountStore)
    store.find_by_email.return_value = None
    cause = RuntimeError("connection to db-primary:5432 refused for user admin")
    store.create.side_effect = StoreError("Failed to create user")
    store.create.side_effect.__cause__ = cause
    replace_flow(app, store=store)

    response = register(client, unique_email())

    assert response.status_code == 500
    assert response.json() == {"error": "database_error", "message": "Failed to create user"}
    assert "db-primary" not in response.text


def test_hash_failure_is_hash_error(client, app):
    hasher = Mock(spec=PasswordHasher)
    hasher.hash.side_effect = HashError()
    replace_flow(app, hasher=hasher)

    response = register(client, unique_email())

    assert response.status_code == 500
    assert response.json() == {"error": "hash_error", "message": "Failed to hash password"}


def test_corrupted_stored_hash_is_verification_error(client, app):
    email = unique_email()
    assert register(client, email).status_code == 201
    with app.state.engine.begin() as conn:
        conn.execute(
            text("UPDATE users SET password_hash = 'plaintext' WHERE email = :email"),
            {"email": email},
        )

    response = client.post("/auth/login", json={"email": email, "password": "secret1"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "verification_error",
        "message": "Failed to verify password",
    }
    assert "plaintext" not in response.text


def test_token_failure_is_token_error(client, app):
    tokens = Mock(spec=TokenService)
    tokens.issue.side_effect = TokenIssueError()
    replace_flow(app, tokens=tokens)

    response = register(client, unique_email())

    assert response.status_code == 500
    assert response.json() == {"error": "token_error", "message": "Failed to generate token"}


def test_lost_registration_race_is_conflict(client, app):
    # another request inserted the email between the lookup and the insert
    store = Mock(spec=AccountStore)
    store.find_by_email.return_value = None
    store.create.side_effect = DuplicateEmail()
    replace_flow(app, store=store)

    response = register(client, unique_email())

    assert response.status_code == 409
    assert response.json() == {"error": "email_exists", "message": "Email already exists"}


def test_server_errors_are_logged_with_cause(client, app, caplog):
    hasher = Mock(spec=PasswordHasher)
    hasher.hash.side_effect = HashError()
    replace_flow(app, hasher=hasher)

    register(client, unique_email())

    errors = [r for r in caplog.records if r.levelname == "ERROR"]
    assert any("hash_error" in r.getMessage() for r in errors)

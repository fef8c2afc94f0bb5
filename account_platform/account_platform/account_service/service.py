"""Account workflows: registration, login and profile access."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping

from .auth import PasswordHasher, TokenClaims, TokenService
from .config import DEFAULT_MAX_PASSWORD_LENGTH, DEFAULT_MIN_PASSWORD_LENGTH
from .errors import EmailExists, InvalidCredentials, NotFound, ValidationError
from .repository import Account, AccountStore

logger = logging.getLogger(__name__)


def _byte_length(password: str) -> int:
    return len(password.encode("utf-8"))


@dataclass(slots=True)
class AuthResult:
    """Token plus identity returned by a successful register or login."""

    token: str
    account_id: str
    email: str


class AuthFlow:
    """Composes the credential hasher, account store and token service."""

    def __init__(
        self,
        store: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenService,
        min_password_length: int = DEFAULT_MIN_PASSWORD_LENGTH,
        max_password_length: int | None = DEFAULT_MAX_PASSWORD_LENGTH,
    ) -> None:
        self._store = store
        self._hasher = hasher
        self._tokens = tokens
        self._min_password_length = min_password_length
        self._max_password_length = max_password_length

    def register(self, email: str, password: str) -> AuthResult:
        """Create an account and issue its first token.

        The existence lookup only produces a friendlier error; two concurrent
        registrations for one email are settled by the store's unique
        constraint, which surfaces as ``DuplicateEmail``.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")
        if _byte_length(password) < self._min_password_length:
            raise ValidationError(
                f"Password must be at least {self._min_password_length} characters long"
            )
        if self._too_long(password):
            raise ValidationError(
                f"Password must be at most {self._max_password_length} characters long"
            )

        if self._store.find_by_email(email) is not None:
            raise EmailExists()

        password_hash = self._hasher.hash(password)
        account = self._store.create(email, password_hash)
        token = self._tokens.issue(account.id, account.email)
        logger.info("Registered account %s", account.id)
        return AuthResult(token=token, account_id=account.id, email=account.email)

    def login(self, email: str, password: str) -> AuthResult:
        """Verify credentials and issue a fresh token.

        Unknown email and wrong password raise the same ``InvalidCredentials``.
        """
        if not email or not password:
            raise ValidationError("Email and password are required")
        if self._too_long(password):
            self._hasher.dummy_verify()
            raise InvalidCredentials()

        account = self._store.find_by_email(email)
        if account is None:
            self._hasher.dummy_verify()
            raise InvalidCredentials()
        if not self._hasher.verify(password, account.password_hash):
            raise InvalidCredentials()

        token = self._tokens.issue(account.id, account.email)
        logger.info("Login: %s", account.id)
        return AuthResult(token=token, account_id=account.id, email=account.email)

    def _too_long(self, password: str) -> bool:
        return (
            self._max_password_length is not None
            and _byte_length(password) > self._max_password_length
        )

    def authenticate(self, token: str) -> TokenClaims:
        """Return the claims of a bearer token or raise ``InvalidToken``."""
        return self._tokens.verify(token)


class ProfileService:
    """Read and update the profile fields of an existing account."""

    def __init__(self, store: AccountStore) -> None:
        self._store = store

    def get_profile(self, account_id: str) -> Account:
        account = self._store.find_by_id(account_id)
        if account is None:
            raise NotFound()
        return account

    def update_profile(self, account_id: str, fields: Mapping[str, Any]) -> Account:
        return self._store.update_profile(account_id, fields)

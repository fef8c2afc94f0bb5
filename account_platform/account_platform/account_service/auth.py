from dataclasses import dataclass
from datetime import timedelta
from typing import Callable, Optional
import logging
import time
import uuid

from passlib.context import CryptContext
from passlib.exc import PasswordSizeError
import jwt

from .config import DEFAULT_HASH_ROUNDS, DEFAULT_TOKEN_TTL_HOURS
from .errors import HashError, InvalidToken, TokenIssueError, VerifyError

logger = logging.getLogger(__name__)


class PasswordHasher:
    """
    One-way salted password hashing.

    Hashes are self-describing pbkdf2-sha256 strings
    (``$pbkdf2-sha256$<rounds>$<salt>$<checksum>``), so hashes created under an
    older work factor still verify after ``rounds`` is raised.
    """

    # Use pbkdf2_sha256 to avoid external bcrypt backend issues in some environments
    def __init__(self, rounds: int = DEFAULT_HASH_ROUNDS):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        try:
            return self._context.hash(password)
        except (TypeError, ValueError) as exc:
            raise HashError() from exc

    def verify(self, password: str, password_hash: str) -> bool:
        """
        Check ``password`` against a stored hash.

        Returns False on mismatch, including a password longer than the hasher
        accepts; raises VerifyError when ``password_hash`` is not a hash this
        scheme produced.
        """
        try:
            return self._context.verify(password, password_hash)
        except PasswordSizeError:
            self.dummy_verify()
            return False
        except (TypeError, ValueError) as exc:
            raise VerifyError() from exc

    def dummy_verify(self) -> None:
        """Spend the same time as a real verify; used when no account matched."""
        self._context.dummy_verify()


def _is_timestamp(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    issued_at: float
    expires_at: float
    token_id: Optional[str] = None


class TokenService:
    """Issues and verifies HMAC-signed bearer tokens (JWT)."""

    def __init__(
        self,
        secret: str,
        ttl: timedelta = timedelta(hours=DEFAULT_TOKEN_TTL_HOURS),
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("token signing secret must not be empty")
        if not algorithm.startswith("HS"):
            raise ValueError(f"unsupported token algorithm '{algorithm}', expected an HMAC algorithm")
        self._secret = secret
        self._algorithm = algorithm
        self._ttl_seconds = int(ttl.total_seconds())
        self._clock = clock

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, account_id: str, email: str) -> str:
        now = self._clock()
        payload = {
            "sub": account_id,
            "email": email,
            "iat": now,
            "exp": now + self._ttl_seconds,
            "jti": uuid.uuid4().hex,
        }
        try:
            return jwt.encode(payload, self._secret, algorithm=self._algorithm)
        except (TypeError, ValueError, jwt.PyJWTError) as exc:
            raise TokenIssueError() from exc

    def verify(self, token: str) -> TokenClaims:
        """
        Decode ``token`` and return its claims.

        Malformed input, a signature that does not match this service's
        secret, and an expired token all raise the same InvalidToken.
        """
        if not isinstance(token, str) or not token:
            raise InvalidToken()
        try:
            # expiry is checked below against the injected clock
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": ["sub", "email", "iat", "exp"],
                },
            )
        except jwt.PyJWTError as exc:
            logger.debug("Token rejected: %s", type(exc).__name__)
            raise InvalidToken() from exc

        subject, email = payload["sub"], payload["email"]
        issued_at, expires_at = payload["iat"], payload["exp"]
        if not isinstance(subject, str) or not isinstance(email, str):
            raise InvalidToken()
        if not _is_timestamp(issued_at) or not _is_timestamp(expires_at):
            raise InvalidToken()
        if self._clock() >= expires_at:
            logger.debug("Token rejected: expired")
            raise InvalidToken()

        return TokenClaims(
            subject=subject,
            email=email,
            issued_at=issued_at,
            expires_at=expires_at,
            token_id=payload.get("jti"),
        )

"""Database repository for account records."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from .errors import DuplicateEmail, NotFound, StoreError, ValidationError
from .models import MEMBERSHIP_LEVELS, User

logger = logging.getLogger(__name__)

PROFILE_FIELDS = frozenset(
    {"first_name", "last_name", "phone", "membership_id", "membership_level", "points"}
)


@dataclass(slots=True)
class Account:
    """Persisted identity record: email, credential hash and profile."""

    id: str
    email: str
    password_hash: str
    first_name: Optional[str]
    last_name: Optional[str]
    phone: Optional[str]
    membership_id: Optional[str]
    membership_level: str
    points: int
    created_at: datetime
    updated_at: datetime


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AccountStore:
    """SQLAlchemy-backed account persistence; each call is an independent point operation."""

    def __init__(self, session_factory: sessionmaker, default_membership_level: str = "Bronze") -> None:
        self._session_factory = session_factory
        self._default_membership_level = default_membership_level

    def create(self, email: str, password_hash: str) -> Account:
        """Insert a new account; raises DuplicateEmail when the email is already taken."""
        now = _now()
        row = User(
            id=str(uuid.uuid4()),
            email=email,
            password_hash=password_hash,
            membership_level=self._default_membership_level,
            points=0,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory() as session:
            try:
                session.add(row)
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                # the primary key is a fresh uuid4, so the unique email index is what fired
                raise DuplicateEmail() from exc
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Failed to create account: %s", exc)
                raise StoreError("Failed to create user") from exc
            return self._map_record(row)

    def find_by_email(self, email: str) -> Account | None:
        return self._find_one(select(User).where(User.email == email))

    def find_by_id(self, account_id: str) -> Account | None:
        return self._find_one(select(User).where(User.id == account_id))

    def update_profile(self, account_id: str, fields: Mapping[str, Any]) -> Account:
        """Apply only the provided profile fields and advance ``updated_at``."""
        self._validate_profile_fields(fields)
        with self._session_factory() as session:
            try:
                row = session.get(User, account_id)
                if row is None:
                    raise NotFound()
                for name, value in fields.items():
                    setattr(row, name, value)
                row.updated_at = max(_now(), row.updated_at)
                session.commit()
            except SQLAlchemyError as exc:
                session.rollback()
                logger.error("Failed to update account %s: %s", account_id, exc)
                raise StoreError("Failed to update user") from exc
            return self._map_record(row)

    def _find_one(self, statement) -> Account | None:
        with self._session_factory() as session:
            try:
                row = session.execute(statement).scalar_one_or_none()
            except SQLAlchemyError as exc:
                logger.error("Failed to find account: %s", exc)
                raise StoreError("Failed to find user") from exc
            if row is None:
                return None
            return self._map_record(row)

    def _validate_profile_fields(self, fields: Mapping[str, Any]) -> None:
        unknown = set(fields) - PROFILE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown profile fields: {', '.join(sorted(unknown))}")
        if "membership_level" in fields and fields["membership_level"] not in MEMBERSHIP_LEVELS:
            raise ValidationError(
                f"membership_level must be one of: {', '.join(MEMBERSHIP_LEVELS)}"
            )
        if "points" in fields:
            points = fields["points"]
            if not isinstance(points, int) or isinstance(points, bool) or points < 0:
                raise ValidationError("points must be a non-negative integer")

    def _map_record(self, row: User) -> Account:
        """Convert an ORM row into the ``Account`` dataclass."""
        return Account(
            id=row.id,
            email=row.email,
            password_hash=row.password_hash,
            first_name=row.first_name,
            last_name=row.last_name,
            phone=row.phone,
            membership_id=row.membership_id,
            membership_level=row.membership_level,
            points=row.points,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

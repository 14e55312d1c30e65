from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from src.chesslobby.infrastructure.persistence.base import Base, session_scope


@dataclass(frozen=True, slots=True)
class UserAccount:
    user_id: str
    username: str
    display_name: str
    created_at: datetime


class UsernameTakenError(ValueError):
    """Raised when a username is already registered to another user id."""


class UserRecord(Base):  # type: ignore[misc]
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(64), nullable=False, unique=True, index=True)
    display_name = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class SqlAlchemyIdentityDirectory:
    """Identity directory backed by the ``users`` table.

    Usernames are matched case-insensitively; they are stored lower-cased.
    Each call opens its own short-lived database session so the directory can
    be shared across request and socket threads.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    def register(self, user_id: str, username: str, display_name: str | None = None) -> UserAccount:
        """Insert or update the account for ``user_id``."""
        normalized = username.strip().lower()
        if not normalized:
            raise ValueError("username must not be empty.")

        try:
            with session_scope(self._session_factory) as db:
                owner = db.scalar(select(UserRecord.id).where(UserRecord.username == normalized))
                if owner is not None and owner != user_id:
                    raise UsernameTakenError(f"Username {normalized!r} belongs to another user.")

                record = db.get(UserRecord, user_id)
                if record is None:
                    record = UserRecord(
                        id=user_id,
                        username=normalized,
                        display_name=display_name or username.strip(),
                        created_at=datetime.now(timezone.utc),
                    )
                    db.add(record)
                else:
                    record.username = normalized
                    record.display_name = display_name or username.strip()
                db.flush()
                return self._to_entity(record)
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same username.
            raise UsernameTakenError(f"Username {normalized!r} belongs to another user.") from exc

    def get(self, user_id: str) -> UserAccount | None:
        with session_scope(self._session_factory) as db:
            record = db.get(UserRecord, user_id)
            return self._to_entity(record) if record else None

    def resolve_by_username(self, username: str) -> str | None:
        normalized = username.strip().lower()
        if not normalized:
            return None
        with session_scope(self._session_factory) as db:
            return db.scalar(select(UserRecord.id).where(UserRecord.username == normalized))

    def display_name(self, user_id: str) -> str:
        account = self.get(user_id)
        return account.display_name if account else user_id

    @staticmethod
    def _to_entity(record: UserRecord) -> UserAccount:
        return UserAccount(
            user_id=record.id,
            username=record.username,
            display_name=record.display_name,
            created_at=record.created_at or datetime.now(timezone.utc),
        )


__all__ = ["SqlAlchemyIdentityDirectory", "UserAccount", "UserRecord", "UsernameTakenError"]

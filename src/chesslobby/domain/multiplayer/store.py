from __future__ import annotations

import copy
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterator, List, TypeVar
from uuid import UUID, uuid4
from contextlib import contextmanager

from src.chesslobby.domain.chess import Position
from src.chesslobby.domain.multiplayer.errors import (
    InvalidInviteeError,
    InvalidRequestError,
    NotFoundError,
)
from src.chesslobby.domain.multiplayer.models import (
    CreateSessionRequest,
    IdentityDirectory,
    Player,
    PlayerColor,
    Session,
    SessionStatus,
    Visibility,
)

T = TypeVar("T")


class SessionStore:
    """Process-lifetime table of sessions with per-session serialized mutation.

    Callers only ever see detached copies. ``mutate`` runs the transformation on
    a working copy and commits it only when the transformation returns, so a
    rejected operation leaves the stored session untouched.
    """

    def __init__(self, identities: IdentityDirectory, initial_position: Callable[[], Position]) -> None:
        self._identities = identities
        self._initial_position = initial_position
        self._sessions: Dict[UUID, Session] = {}
        self._locks: Dict[UUID, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create(self, initiator: str, request: CreateSessionRequest) -> Session:
        invited_identity: str | None = None
        if request.invitee_username:
            if request.visibility is not Visibility.private:
                raise InvalidRequestError("Only private games can name an invitee.")
            invited_identity = self._identities.resolve_by_username(request.invitee_username)
            if invited_identity is None:
                raise InvalidInviteeError(f"User {request.invitee_username!r} not found.")
            if invited_identity == initiator:
                raise InvalidInviteeError("You cannot invite yourself.")

        now = datetime.now(timezone.utc)
        session = Session(
            id=uuid4(),
            visibility=request.visibility,
            status=SessionStatus.pending_invite if invited_identity else SessionStatus.created,
            created_by=initiator,
            position=self._initial_position(),
            players=[
                Player(
                    user_id=initiator,
                    display_name=self._identities.display_name(initiator),
                    color=PlayerColor.white,
                )
            ],
            invited_identity=invited_identity,
            created_at=now,
            updated_at=now,
        )
        with self._registry_lock:
            self._sessions[session.id] = session
            self._locks[session.id] = threading.Lock()
        return copy.deepcopy(session)

    def get(self, session_id: UUID) -> Session:
        with self._registry_lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise NotFoundError(f"Session {session_id} not found.")
            return copy.deepcopy(session)

    def mutate(self, session_id: UUID, fn: Callable[[Session], T]) -> tuple[Session, T]:
        """Apply ``fn`` atomically; returns the committed session and ``fn``'s result."""
        with self._locked(session_id) as current:
            working = copy.deepcopy(current)
            result = fn(working)
            working.updated_at = datetime.now(timezone.utc)
            with self._registry_lock:
                self._sessions[session_id] = working
            return copy.deepcopy(working), result

    def remove(self, session_id: UUID, guard: Callable[[Session], None]) -> Session:
        """Validate with ``guard`` under the session lock, then discard the session."""
        with self._locked(session_id) as current:
            snapshot = copy.deepcopy(current)
            guard(snapshot)
            with self._registry_lock:
                self._sessions.pop(session_id, None)
                self._locks.pop(session_id, None)
            return snapshot

    def list_public_open(self) -> List[Session]:
        return self._select(
            lambda s: s.visibility is Visibility.public and s.status is SessionStatus.created
        )

    def sessions_for_user(self, user_id: str) -> List[Session]:
        return self._select(lambda s: s.player(user_id) is not None)

    def pending_invitations_for(self, user_id: str) -> List[Session]:
        return self._select(
            lambda s: s.status is SessionStatus.pending_invite and s.invited_identity == user_id
        )

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._sessions)

    def _select(self, predicate: Callable[[Session], bool]) -> List[Session]:
        with self._registry_lock:
            return [copy.deepcopy(s) for s in self._sessions.values() if predicate(s)]

    @contextmanager
    def _locked(self, session_id: UUID) -> Iterator[Session]:
        with self._registry_lock:
            lock = self._locks.get(session_id)
        if lock is None:
            raise NotFoundError(f"Session {session_id} not found.")

        with lock:
            # The session may have been removed while this caller waited.
            with self._registry_lock:
                current = self._sessions.get(session_id)
            if current is None:
                raise NotFoundError(f"Session {session_id} not found.")
            yield current


__all__ = ["SessionStore"]

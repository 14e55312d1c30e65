from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, List
from uuid import UUID

from src.chesslobby.domain.multiplayer.models import (
    PlayerColor,
    Session,
    SessionStatus,
)
from src.chesslobby.domain.multiplayer.store import SessionStore

_UNITS = (
    ("year", 365 * 24 * 3600),
    ("month", 30 * 24 * 3600),
    ("day", 24 * 3600),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
)


def time_since(moment: datetime, now: datetime) -> str:
    """Coarse "N units ago" label using the largest unit with a value of at least one."""
    elapsed = max(int((now - moment).total_seconds()), 0)
    for unit, seconds in _UNITS:
        value = elapsed // seconds
        if value >= 1:
            return f"{value} {unit}{'' if value == 1 else 's'} ago"
    return "0 seconds ago"


@dataclass(frozen=True)
class LobbyEntry:
    session: Session
    time_since_creation: str


@dataclass(frozen=True)
class InvitationEntry:
    session_id: UUID
    inviting_user_id: str
    inviting_user_name: str
    time_since_creation: str


@dataclass(frozen=True)
class HistoryEntry:
    session_id: UUID
    opponent_name: str | None
    color: PlayerColor
    result: str
    status: SessionStatus
    played_at: datetime


class LobbyIndex:
    """Read-only views derived from the session store on every call."""

    def __init__(
        self,
        store: SessionStore,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def list_public_open(self) -> List[LobbyEntry]:
        now = self._clock()
        sessions = sorted(self._store.list_public_open(), key=lambda s: s.created_at, reverse=True)
        return [LobbyEntry(session=s, time_since_creation=time_since(s.created_at, now)) for s in sessions]

    def invitations_for(self, user_id: str) -> List[InvitationEntry]:
        now = self._clock()
        sessions = sorted(
            self._store.pending_invitations_for(user_id), key=lambda s: s.created_at, reverse=True
        )
        return [
            InvitationEntry(
                session_id=s.id,
                inviting_user_id=s.created_by,
                inviting_user_name=s.players[0].display_name,
                time_since_creation=time_since(s.created_at, now),
            )
            for s in sessions
        ]

    def history_for(self, user_id: str) -> List[HistoryEntry]:
        finished = [s for s in self._store.sessions_for_user(user_id) if s.status.is_terminal]
        finished.sort(key=lambda s: s.ended_at or s.updated_at, reverse=True)

        entries: List[HistoryEntry] = []
        for session in finished:
            me = session.player(user_id)
            opponent = session.opponent_of(user_id)
            if session.winner is None:
                result = "draw"
            else:
                result = "won" if session.winner == user_id else "lost"
            entries.append(
                HistoryEntry(
                    session_id=session.id,
                    opponent_name=opponent.display_name if opponent else None,
                    color=me.color,
                    result=result,
                    status=session.status,
                    played_at=session.created_at,
                )
            )
        return entries


__all__ = ["HistoryEntry", "InvitationEntry", "LobbyEntry", "LobbyIndex", "time_since"]

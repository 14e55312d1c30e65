"""Outbound events produced by the state machine.

The state machine never talks to a transport. It returns :class:`Event` values
and the relay decides how to deliver them once the mutation has committed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from src.chesslobby.domain.multiplayer.models import Session

GAME_CREATED = "game:created"
INVITED = "user:invitedToGame"
PLAYER_JOINED = "game:playerJoined"
STATE_UPDATED = "game:updated"
DRAW_OFFERED = "game:drawOffered"
DRAW_RESPONDED = "game:drawResponded"
GAME_ENDED = "game:ended"
INVITATION_DECLINED = "game:invitationDeclined"
GAME_CANCELLED = "game:cancelled"
OPPONENT_DISCONNECTED = "game:opponentDisconnected"
LOBBY_UPDATED = "lobby:gamesListUpdated"


@dataclass(frozen=True)
class Audience:
    users: tuple[str, ...] = ()
    lobby: bool = False

    @classmethod
    def participants(cls, session: Session, *, lobby: bool = False) -> "Audience":
        return cls(users=session.participant_ids(), lobby=lobby)

    @classmethod
    def user(cls, user_id: str) -> "Audience":
        return cls(users=(user_id,))


@dataclass(frozen=True)
class Event:
    name: str
    audience: Audience
    payload: dict[str, Any] = field(default_factory=dict)
    session: Session | None = None


def touches_lobby(events: Iterable[Event]) -> bool:
    return any(event.audience.lobby for event in events)


__all__ = [
    "Audience",
    "DRAW_OFFERED",
    "DRAW_RESPONDED",
    "Event",
    "GAME_CANCELLED",
    "GAME_CREATED",
    "GAME_ENDED",
    "INVITATION_DECLINED",
    "INVITED",
    "LOBBY_UPDATED",
    "OPPONENT_DISCONNECTED",
    "PLAYER_JOINED",
    "STATE_UPDATED",
    "touches_lobby",
]

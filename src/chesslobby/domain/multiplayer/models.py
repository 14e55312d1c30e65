from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Protocol
from uuid import UUID

import chess.pgn

from src.chesslobby.domain.chess import Position


class Visibility(str, Enum):
    public = "public"
    private = "private"


class SessionStatus(str, Enum):
    created = "created"
    pending_invite = "pending_invite"
    active = "active"
    checkmate = "checkmate"
    stalemate = "stalemate"
    draw = "draw"
    resigned = "resigned"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    @property
    def is_awaiting_opponent(self) -> bool:
        return self in (SessionStatus.created, SessionStatus.pending_invite)


TERMINAL_STATUSES = frozenset(
    {
        SessionStatus.checkmate,
        SessionStatus.stalemate,
        SessionStatus.draw,
        SessionStatus.resigned,
    }
)


class PlayerColor(str, Enum):
    white = "white"
    black = "black"

    @property
    def opposite(self) -> "PlayerColor":
        return PlayerColor.black if self is PlayerColor.white else PlayerColor.white


@dataclass(frozen=True)
class Player:
    user_id: str
    display_name: str
    color: PlayerColor


@dataclass(frozen=True)
class MoveRecord:
    san: str
    uci: str
    played_by: str
    fen_after: str
    timestamp: datetime
    is_check: bool = False


@dataclass(frozen=True)
class CreateSessionRequest:
    """Creation request issued by an authenticated user."""

    visibility: Visibility
    invitee_username: str | None = None


@dataclass
class Session:
    id: UUID
    visibility: Visibility
    status: SessionStatus
    created_by: str
    position: Position
    players: List[Player] = field(default_factory=list)
    turn: PlayerColor = PlayerColor.white
    history: List[MoveRecord] = field(default_factory=list)
    invited_identity: str | None = None
    winner: str | None = None
    pending_draw_offerer: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    ended_at: datetime | None = None

    def player(self, user_id: str) -> Player | None:
        return next((p for p in self.players if p.user_id == user_id), None)

    def opponent_of(self, user_id: str) -> Player | None:
        return next((p for p in self.players if p.user_id != user_id), None)

    def participant_ids(self) -> tuple[str, ...]:
        return tuple(p.user_id for p in self.players)

    @property
    def current_fen(self) -> str:
        return self.history[-1].fen_after if self.history else self.position.initial_fen

    @property
    def in_check(self) -> bool:
        """Whether the side to move is in check after the last accepted move."""
        return self.history[-1].is_check if self.history else False

    def pgn(self) -> str:
        """Replayable move-notation log for the session."""
        game = chess.pgn.Game()
        board = chess.Board(self.position.initial_fen)
        if self.position.initial_fen != chess.STARTING_FEN:
            game.setup(board)

        white = next((p for p in self.players if p.color is PlayerColor.white), None)
        black = next((p for p in self.players if p.color is PlayerColor.black), None)
        game.headers["Event"] = "Multiplayer game"
        game.headers["Site"] = str(self.id)
        game.headers["Date"] = self.created_at.strftime("%Y.%m.%d")
        game.headers["White"] = white.display_name if white else "?"
        game.headers["Black"] = black.display_name if black else "?"
        game.headers["Result"] = self.result_token()

        node = game
        for record in self.history:
            node = node.add_variation(chess.Move.from_uci(record.uci))
        return str(game.accept(chess.pgn.StringExporter(headers=True, variations=False, comments=False)))

    def result_token(self) -> str:
        if self.status in (SessionStatus.draw, SessionStatus.stalemate):
            return "1/2-1/2"
        if self.winner is not None:
            winner = self.player(self.winner)
            if winner is not None:
                return "1-0" if winner.color is PlayerColor.white else "0-1"
        return "*"


class IdentityDirectory(Protocol):
    """Identity resolution capability backed by the account store."""

    def resolve_by_username(self, username: str) -> str | None:
        ...

    def display_name(self, user_id: str) -> str:
        ...


__all__ = [
    "CreateSessionRequest",
    "IdentityDirectory",
    "MoveRecord",
    "Player",
    "PlayerColor",
    "Session",
    "SessionStatus",
    "TERMINAL_STATUSES",
    "Visibility",
]

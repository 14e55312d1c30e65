from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import chess


@dataclass(frozen=True)
class Position:
    """Replayable board state: a starting FEN plus the UCI moves applied to it."""

    initial_fen: str
    moves: tuple[str, ...] = ()


@dataclass(frozen=True)
class MoveSpec:
    """A candidate move as submitted by a client."""

    from_square: str
    to_square: str
    promotion: str | None = None

    @classmethod
    def from_uci(cls, uci: str) -> "MoveSpec":
        text = uci.strip().lower()
        if len(text) not in (4, 5):
            raise ValueError(f"Invalid UCI string: {uci!r}")
        return cls(from_square=text[:2], to_square=text[2:4], promotion=text[4:] or None)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MoveSpec":
        """Accept either ``{"uci": "e2e4"}`` or ``{"from": "e2", "to": "e4", "promotion": "q"}``."""
        uci = payload.get("uci")
        if isinstance(uci, str):
            return cls.from_uci(uci)

        from_square = payload.get("from")
        to_square = payload.get("to")
        if not isinstance(from_square, str) or not isinstance(to_square, str):
            raise ValueError("move must provide 'uci' or both 'from' and 'to'.")

        promotion = payload.get("promotion")
        if promotion is not None and not isinstance(promotion, str):
            raise ValueError("promotion must be a piece letter.")
        return cls(
            from_square=from_square.strip().lower(),
            to_square=to_square.strip().lower(),
            promotion=promotion.strip().lower() if promotion else None,
        )

    def uci(self) -> str:
        return f"{self.from_square}{self.to_square}{self.promotion or ''}"


@dataclass(frozen=True)
class MoveOutcome:
    """Result of applying an accepted move."""

    position: Position
    uci: str
    san: str
    fen: str
    is_check: bool
    is_checkmate: bool
    is_stalemate: bool
    is_draw: bool


class IllegalMoveRejected(ValueError):
    """Raised by the oracle when a candidate move is not legal in the position."""


class RuleOracle(Protocol):
    """Chess legality capability consumed by the session state machine."""

    def initial_position(self) -> Position:
        ...

    def apply_move(self, position: Position, move: MoveSpec) -> MoveOutcome:
        ...

    def fen(self, position: Position) -> str:
        ...

    def to_board(self, position: Position) -> chess.Board:
        ...


class PythonChessOracle:
    """Rule oracle backed by ``python-chess``."""

    def __init__(self, starting_fen: str = chess.STARTING_FEN) -> None:
        chess.Board(starting_fen)  # validates the FEN eagerly
        self._starting_fen = starting_fen

    def initial_position(self) -> Position:
        return Position(initial_fen=self._starting_fen)

    def apply_move(self, position: Position, move: MoveSpec) -> MoveOutcome:
        board = self.to_board(position)
        try:
            candidate = chess.Move.from_uci(move.uci())
        except ValueError as exc:
            raise IllegalMoveRejected(f"Invalid move notation: {move.uci()}") from exc

        # Promotion piece omitted by the client: default to a queen.
        if candidate.promotion is None and self._is_promotion(board, candidate):
            candidate = chess.Move(candidate.from_square, candidate.to_square, promotion=chess.QUEEN)

        if candidate not in board.legal_moves:
            raise IllegalMoveRejected(f"Move {candidate.uci()} is not legal in the current position.")

        san = board.san(candidate)
        board.push(candidate)

        outcome = board.outcome(claim_draw=True)
        is_checkmate = outcome is not None and outcome.termination is chess.Termination.CHECKMATE
        is_stalemate = outcome is not None and outcome.termination is chess.Termination.STALEMATE
        is_draw = outcome is not None and outcome.winner is None and not is_stalemate

        return MoveOutcome(
            position=Position(initial_fen=position.initial_fen, moves=position.moves + (candidate.uci(),)),
            uci=candidate.uci(),
            san=san,
            fen=board.fen(),
            is_check=board.is_check(),
            is_checkmate=is_checkmate,
            is_stalemate=is_stalemate,
            is_draw=is_draw,
        )

    def fen(self, position: Position) -> str:
        return self.to_board(position).fen()

    @staticmethod
    def to_board(position: Position) -> chess.Board:
        board = chess.Board(position.initial_fen)
        for uci in position.moves:
            board.push(chess.Move.from_uci(uci))
        return board

    @staticmethod
    def _is_promotion(board: chess.Board, move: chess.Move) -> bool:
        piece = board.piece_at(move.from_square)
        if piece is None or piece.piece_type != chess.PAWN:
            return False
        return chess.square_rank(move.to_square) in (0, 7)


__all__ = [
    "IllegalMoveRejected",
    "MoveOutcome",
    "MoveSpec",
    "Position",
    "PythonChessOracle",
    "RuleOracle",
]

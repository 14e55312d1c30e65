from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Protocol, Sequence

import chess


@dataclass(frozen=True)
class MoveSuggestion:
    """Suggester result describing the proposed move."""

    move: chess.Move
    san: str
    rationale: Sequence[str] | None = None


class SuggesterUnavailable(RuntimeError):
    """Raised when the suggester cannot produce a move."""


class MoveSuggester(Protocol):
    """Contract for proposing a move in a given position."""

    def suggest(self, board: chess.Board) -> MoveSuggestion:
        """Pick a legal move for the supplied board position."""


class RandomMoveSuggester:
    """Picks uniformly among legal moves, preferring captures and checks.

    Seeded so sessions replay deterministically in tests.
    """

    def __init__(self, seed: int | None = None) -> None:
        self._rng = random.Random(seed)

    def suggest(self, board: chess.Board) -> MoveSuggestion:
        legal_moves = list(board.legal_moves)
        if not legal_moves:
            raise SuggesterUnavailable("No legal moves in the current position.")

        forcing = [move for move in legal_moves if board.is_capture(move) or board.gives_check(move)]
        pool = forcing or legal_moves
        move = self._rng.choice(pool)
        rationale = ["forcing"] if forcing else ["random"]
        return MoveSuggestion(move=move, san=board.san(move), rationale=rationale)


__all__ = ["MoveSuggester", "MoveSuggestion", "RandomMoveSuggester", "SuggesterUnavailable"]

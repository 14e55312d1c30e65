from .move_suggester import (
    MoveSuggester,
    MoveSuggestion,
    RandomMoveSuggester,
    SuggesterUnavailable,
)
from .rule_oracle import (
    IllegalMoveRejected,
    MoveOutcome,
    MoveSpec,
    Position,
    PythonChessOracle,
    RuleOracle,
)

__all__ = [
    "IllegalMoveRejected",
    "MoveOutcome",
    "MoveSpec",
    "MoveSuggester",
    "MoveSuggestion",
    "Position",
    "PythonChessOracle",
    "RandomMoveSuggester",
    "RuleOracle",
    "SuggesterUnavailable",
]

"""Closed error taxonomy for the multiplayer core.

Each exception carries an :class:`ErrorKind`; boundary layers translate the kind,
never the class name, into an externally visible status.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    not_found = "not_found"
    invalid_invitee = "invalid_invitee"
    not_joinable = "not_joinable"
    game_full = "game_full"
    already_joined = "already_joined"
    not_invited = "not_invited"
    invalid_state = "invalid_state"
    player_not_in_session = "player_not_in_session"
    not_your_turn = "not_your_turn"
    illegal_move = "illegal_move"
    no_pending_offer = "no_pending_offer"
    cannot_respond_to_own_offer = "cannot_respond_to_own_offer"
    game_over = "game_over"
    suggestion_unavailable = "suggestion_unavailable"
    invalid_request = "invalid_request"
    unauthorized = "unauthorized"


class SessionError(RuntimeError):
    """Base class for multiplayer domain errors."""

    kind: ErrorKind

    @property
    def code(self) -> str:
        return self.kind.value


class NotFoundError(SessionError):
    kind = ErrorKind.not_found


class InvalidInviteeError(SessionError):
    kind = ErrorKind.invalid_invitee


class NotJoinableError(SessionError):
    kind = ErrorKind.not_joinable


class GameFullError(SessionError):
    kind = ErrorKind.game_full


class AlreadyJoinedError(SessionError):
    kind = ErrorKind.already_joined


class NotInvitedError(SessionError):
    kind = ErrorKind.not_invited


class InvalidStateError(SessionError):
    kind = ErrorKind.invalid_state


class PlayerNotInSessionError(SessionError):
    kind = ErrorKind.player_not_in_session


class NotYourTurnError(SessionError):
    kind = ErrorKind.not_your_turn


class IllegalMoveError(SessionError):
    kind = ErrorKind.illegal_move


class NoPendingOfferError(SessionError):
    kind = ErrorKind.no_pending_offer


class CannotRespondToOwnOfferError(SessionError):
    kind = ErrorKind.cannot_respond_to_own_offer


class GameOverError(SessionError):
    kind = ErrorKind.game_over


class SuggestionUnavailableError(SessionError):
    kind = ErrorKind.suggestion_unavailable


class InvalidRequestError(SessionError):
    kind = ErrorKind.invalid_request


class UnauthorizedError(SessionError):
    kind = ErrorKind.unauthorized


__all__ = [
    "AlreadyJoinedError",
    "CannotRespondToOwnOfferError",
    "ErrorKind",
    "GameFullError",
    "GameOverError",
    "IllegalMoveError",
    "InvalidInviteeError",
    "InvalidRequestError",
    "InvalidStateError",
    "NoPendingOfferError",
    "NotFoundError",
    "NotInvitedError",
    "NotJoinableError",
    "NotYourTurnError",
    "PlayerNotInSessionError",
    "SessionError",
    "SuggestionUnavailableError",
    "UnauthorizedError",
]

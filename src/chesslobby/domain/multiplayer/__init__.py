from .errors import (
    AlreadyJoinedError,
    CannotRespondToOwnOfferError,
    ErrorKind,
    GameFullError,
    GameOverError,
    IllegalMoveError,
    InvalidInviteeError,
    InvalidRequestError,
    InvalidStateError,
    NoPendingOfferError,
    NotFoundError,
    NotInvitedError,
    NotJoinableError,
    NotYourTurnError,
    PlayerNotInSessionError,
    SessionError,
    SuggestionUnavailableError,
    UnauthorizedError,
)
from .events import Audience, Event
from .lobby import HistoryEntry, InvitationEntry, LobbyEntry, LobbyIndex, time_since
from .models import (
    CreateSessionRequest,
    IdentityDirectory,
    MoveRecord,
    Player,
    PlayerColor,
    Session,
    SessionStatus,
    Visibility,
)
from .state_machine import GameSessionStateMachine
from .store import SessionStore

__all__ = [
    "AlreadyJoinedError",
    "Audience",
    "CannotRespondToOwnOfferError",
    "CreateSessionRequest",
    "ErrorKind",
    "Event",
    "GameFullError",
    "GameOverError",
    "GameSessionStateMachine",
    "HistoryEntry",
    "IdentityDirectory",
    "IllegalMoveError",
    "InvalidInviteeError",
    "InvalidRequestError",
    "InvalidStateError",
    "InvitationEntry",
    "LobbyEntry",
    "LobbyIndex",
    "MoveRecord",
    "NoPendingOfferError",
    "NotFoundError",
    "NotInvitedError",
    "NotJoinableError",
    "NotYourTurnError",
    "Player",
    "PlayerColor",
    "PlayerNotInSessionError",
    "Session",
    "SessionError",
    "SessionStatus",
    "SessionStore",
    "SuggestionUnavailableError",
    "UnauthorizedError",
    "Visibility",
    "time_since",
]

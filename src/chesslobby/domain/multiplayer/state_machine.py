from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Tuple
from uuid import UUID

from src.chesslobby.domain.chess import (
    IllegalMoveRejected,
    MoveSpec,
    MoveSuggester,
    MoveSuggestion,
    RuleOracle,
    SuggesterUnavailable,
)
from src.chesslobby.domain.multiplayer import events as ev
from src.chesslobby.domain.multiplayer.errors import (
    AlreadyJoinedError,
    CannotRespondToOwnOfferError,
    GameFullError,
    GameOverError,
    IllegalMoveError,
    InvalidStateError,
    NoPendingOfferError,
    NotInvitedError,
    NotJoinableError,
    NotYourTurnError,
    PlayerNotInSessionError,
    SuggestionUnavailableError,
)
from src.chesslobby.domain.multiplayer.events import Audience, Event
from src.chesslobby.domain.multiplayer.models import (
    CreateSessionRequest,
    IdentityDirectory,
    MoveRecord,
    Player,
    PlayerColor,
    Session,
    SessionStatus,
    Visibility,
)
from src.chesslobby.domain.multiplayer.store import SessionStore

Outcome = Tuple[Session, List[Event]]


class GameSessionStateMachine:
    """Validate and apply lifecycle operations on multiplayer sessions.

    Every operation returns the committed session together with the events the
    relay should emit. Validation happens inside the store's per-session lock,
    event construction happens after the lock is released.
    """

    def __init__(
        self,
        store: SessionStore,
        oracle: RuleOracle,
        identities: IdentityDirectory,
        suggester: MoveSuggester | None = None,
    ) -> None:
        self._store = store
        self._oracle = oracle
        self._identities = identities
        self._suggester = suggester

    def create_session(self, user_id: str, request: CreateSessionRequest) -> Outcome:
        session = self._store.create(user_id, request)
        events = [
            Event(
                ev.GAME_CREATED,
                Audience(users=(user_id,), lobby=session.visibility is Visibility.public),
                session=session,
            )
        ]
        if session.invited_identity:
            events.append(
                Event(
                    ev.INVITED,
                    Audience.user(session.invited_identity),
                    payload={
                        "gameId": str(session.id),
                        "invitingUserId": user_id,
                        "invitingUserName": session.players[0].display_name,
                    },
                )
            )
        return session, events

    def get_session(self, session_id: UUID) -> Session:
        return self._store.get(session_id)

    def view_session(self, session_id: UUID, user_id: str) -> Session:
        """Read a session on behalf of ``user_id``; private games are visible to their players and invitee only."""
        session = self._store.get(session_id)
        if session.visibility is Visibility.private and not (
            session.player(user_id) is not None or session.invited_identity == user_id
        ):
            raise PlayerNotInSessionError("You are not a participant in this game.")
        return session

    def join_public(self, session_id: UUID, user_id: str) -> Outcome:
        display_name = self._identities.display_name(user_id)

        def _join(session: Session) -> None:
            if len(session.players) >= 2:
                raise GameFullError(f"Session {session_id} already has two players.")
            _ensure_not_over(session)
            if session.player(user_id) is not None:
                raise AlreadyJoinedError("You are already a participant in this game.")
            if session.visibility is not Visibility.public or session.status is not SessionStatus.created:
                raise NotJoinableError(f"Session {session_id} is not open for public joining.")
            self._activate(session, user_id, display_name)

        session, _ = self._store.mutate(session_id, _join)
        return session, [self._player_joined(session, user_id)]

    def accept_invitation(self, session_id: UUID, user_id: str) -> Outcome:
        display_name = self._identities.display_name(user_id)

        def _accept(session: Session) -> None:
            self._ensure_invitee(session, user_id)
            self._activate(session, user_id, display_name)

        session, _ = self._store.mutate(session_id, _accept)
        return session, [self._player_joined(session, user_id)]

    def decline_invitation(self, session_id: UUID, user_id: str) -> Outcome:
        session = self._store.remove(session_id, lambda s: self._ensure_invitee(s, user_id))
        return session, [
            Event(
                ev.INVITATION_DECLINED,
                Audience.user(session.created_by),
                payload={"gameId": str(session.id), "declinedBy": user_id},
            )
        ]

    def cancel(self, session_id: UUID, user_id: str) -> Outcome:
        def _guard(session: Session) -> None:
            _ensure_not_over(session)
            if session.created_by != user_id:
                raise PlayerNotInSessionError("Only the creator can cancel a game.")
            if not session.status.is_awaiting_opponent:
                raise InvalidStateError("A game in progress cannot be cancelled; resign instead.")

        session = self._store.remove(session_id, _guard)
        recipients = (user_id,) + ((session.invited_identity,) if session.invited_identity else ())
        return session, [
            Event(
                ev.GAME_CANCELLED,
                Audience(users=recipients, lobby=session.visibility is Visibility.public),
                payload={"gameId": str(session.id), "cancelledBy": user_id},
            )
        ]

    def make_move(self, session_id: UUID, user_id: str, move: MoveSpec) -> Outcome:
        def _move(session: Session) -> None:
            mover = self._ensure_active_participant(session, user_id)
            if mover.color is not session.turn:
                raise NotYourTurnError(f"It is {session.turn.value}'s turn.")

            try:
                outcome = self._oracle.apply_move(session.position, move)
            except IllegalMoveRejected as exc:
                raise IllegalMoveError(str(exc)) from exc

            now = datetime.now(timezone.utc)
            session.position = outcome.position
            session.history.append(
                MoveRecord(
                    san=outcome.san,
                    uci=outcome.uci,
                    played_by=user_id,
                    fen_after=outcome.fen,
                    timestamp=now,
                    is_check=outcome.is_check,
                )
            )
            session.turn = session.turn.opposite

            if outcome.is_checkmate:
                _finish(session, SessionStatus.checkmate, winner=user_id, at=now)
            elif outcome.is_stalemate:
                _finish(session, SessionStatus.stalemate, winner=None, at=now)
            elif outcome.is_draw:
                _finish(session, SessionStatus.draw, winner=None, at=now)

        session, _ = self._store.mutate(session_id, _move)
        events = [self._state_updated(session)]
        if session.status.is_terminal:
            events.append(self._game_ended(session, reason=session.status.value))
        return session, events

    def offer_draw(self, session_id: UUID, user_id: str) -> Outcome:
        def _offer(session: Session) -> bool:
            self._ensure_active_participant(session, user_id)
            if session.pending_draw_offerer == user_id:
                return False
            session.pending_draw_offerer = user_id
            return True

        session, changed = self._store.mutate(session_id, _offer)
        if not changed:
            return session, []
        return session, [
            Event(
                ev.DRAW_OFFERED,
                Audience.participants(session),
                payload={"gameId": str(session.id), "offeringUserId": user_id},
            )
        ]

    def respond_to_draw(self, session_id: UUID, user_id: str, accepted: bool) -> Outcome:
        def _respond(session: Session) -> None:
            self._ensure_active_participant(session, user_id)
            if session.pending_draw_offerer is None:
                raise NoPendingOfferError("There is no pending draw offer.")
            if session.pending_draw_offerer == user_id:
                raise CannotRespondToOwnOfferError("You cannot respond to your own draw offer.")
            session.pending_draw_offerer = None
            if accepted:
                _finish(session, SessionStatus.draw, winner=None, at=datetime.now(timezone.utc))

        session, _ = self._store.mutate(session_id, _respond)
        events = [
            Event(
                ev.DRAW_RESPONDED,
                Audience.participants(session),
                payload={"gameId": str(session.id), "respondingUserId": user_id, "accepted": accepted},
            )
        ]
        if accepted:
            events.append(self._state_updated(session))
            events.append(self._game_ended(session, reason="draw_agreed"))
        return session, events

    def resign(self, session_id: UUID, user_id: str) -> Outcome:
        def _resign(session: Session) -> None:
            self._ensure_active_participant(session, user_id)
            opponent = session.opponent_of(user_id)
            _finish(
                session,
                SessionStatus.resigned,
                winner=opponent.user_id if opponent else None,
                at=datetime.now(timezone.utc),
            )

        session, _ = self._store.mutate(session_id, _resign)
        return session, [
            self._state_updated(session),
            self._game_ended(session, reason="resign", resigned_by=user_id),
        ]

    def suggest_move(self, session_id: UUID, user_id: str) -> MoveSuggestion:
        session = self._store.get(session_id)
        player = self._ensure_active_participant(session, user_id)
        if player.color is not session.turn:
            raise NotYourTurnError(f"It is {session.turn.value}'s turn.")
        if self._suggester is None:
            raise SuggestionUnavailableError("No move suggester is configured.")

        board = self._oracle.to_board(session.position)
        try:
            return self._suggester.suggest(board)
        except SuggesterUnavailable as exc:
            raise SuggestionUnavailableError(str(exc)) from exc

    def _activate(self, session: Session, user_id: str, display_name: str) -> None:
        session.players.append(
            Player(
                user_id=user_id,
                display_name=display_name,
                color=PlayerColor.black,
            )
        )
        session.position = self._oracle.initial_position()
        session.history = []
        session.turn = PlayerColor.white
        session.status = SessionStatus.active

    @staticmethod
    def _ensure_invitee(session: Session, user_id: str) -> None:
        _ensure_not_over(session)
        if session.status is not SessionStatus.pending_invite:
            raise InvalidStateError(f"Session {session.id} has no pending invitation.")
        if session.invited_identity != user_id:
            raise NotInvitedError("This invitation is addressed to another user.")

    @staticmethod
    def _ensure_active_participant(session: Session, user_id: str) -> Player:
        _ensure_not_over(session)
        if session.status is not SessionStatus.active:
            raise InvalidStateError(f"Session {session.id} is not in progress.")
        player = session.player(user_id)
        if player is None:
            raise PlayerNotInSessionError("You are not a participant in this game.")
        return player

    @staticmethod
    def _player_joined(session: Session, user_id: str) -> Event:
        return Event(
            ev.PLAYER_JOINED,
            Audience.participants(session, lobby=session.visibility is Visibility.public),
            payload={"userId": user_id},
            session=session,
        )

    @staticmethod
    def _state_updated(session: Session) -> Event:
        return Event(ev.STATE_UPDATED, Audience.participants(session), session=session)

    @staticmethod
    def _game_ended(session: Session, *, reason: str, resigned_by: str | None = None) -> Event:
        payload = {"gameId": str(session.id), "reason": reason, "winner": session.winner}
        if resigned_by is not None:
            payload["resignedBy"] = resigned_by
        return Event(ev.GAME_ENDED, Audience.participants(session), payload=payload)


def _ensure_not_over(session: Session) -> None:
    if session.status.is_terminal:
        raise GameOverError(f"Game {session.id} has already ended ({session.status.value}).")


def _finish(session: Session, status: SessionStatus, *, winner: str | None, at: datetime) -> None:
    session.status = status
    session.winner = winner
    session.pending_draw_offerer = None
    session.ended_at = at


__all__ = ["GameSessionStateMachine", "Outcome"]

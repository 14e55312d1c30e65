from __future__ import annotations

from uuid import uuid4

import chess
import pytest

from src.chesslobby.domain.chess import MoveSpec, PythonChessOracle, RandomMoveSuggester
from src.chesslobby.domain.multiplayer import (
    AlreadyJoinedError,
    CannotRespondToOwnOfferError,
    CreateSessionRequest,
    GameFullError,
    GameOverError,
    GameSessionStateMachine,
    IllegalMoveError,
    InvalidStateError,
    NoPendingOfferError,
    NotFoundError,
    NotInvitedError,
    NotJoinableError,
    NotYourTurnError,
    PlayerColor,
    PlayerNotInSessionError,
    SessionStatus,
    SessionStore,
    SuggestionUnavailableError,
    Visibility,
)
from src.chesslobby.domain.multiplayer import events as ev

from tests.conftest import ALICE, BOB, CAROL

PUBLIC = CreateSessionRequest(visibility=Visibility.public)
FOOLS_MATE = ["f2f3", "e7e5", "g2g4", "d8h4"]


def _play(machine, session_id, moves):
    session = None
    for index, uci in enumerate(moves):
        mover = ALICE if index % 2 == 0 else BOB
        session, _ = machine.make_move(session_id, mover, MoveSpec.from_uci(uci))
    return session


def _active(machine):
    created, _ = machine.create_session(ALICE, PUBLIC)
    machine.join_public(created.id, BOB)
    return created.id


def _machine_from(fen: str, identities) -> GameSessionStateMachine:
    oracle = PythonChessOracle(starting_fen=fen)
    store = SessionStore(identities, oracle.initial_position)
    return GameSessionStateMachine(store, oracle, identities)


def test_create_public_session_assigns_creator_white(machine) -> None:
    session, events = machine.create_session(ALICE, PUBLIC)

    assert session.status is SessionStatus.created
    assert [(p.user_id, p.color) for p in session.players] == [(ALICE, PlayerColor.white)]
    assert session.players[0].display_name == "Alice"
    assert [e.name for e in events] == [ev.GAME_CREATED]
    assert events[0].audience.lobby is True


def test_private_invitation_targets_only_invitee(machine) -> None:
    session, events = machine.create_session(
        ALICE, CreateSessionRequest(visibility=Visibility.private, invitee_username="bob")
    )

    assert session.status is SessionStatus.pending_invite
    assert session.invited_identity == BOB
    created, invited = events
    assert created.audience.lobby is False
    assert invited.name == ev.INVITED
    assert invited.audience.users == (BOB,)
    assert invited.payload["invitingUserName"] == "Alice"


def test_join_public_activates_game(machine) -> None:
    created, _ = machine.create_session(ALICE, PUBLIC)
    session, events = machine.join_public(created.id, BOB)

    assert session.status is SessionStatus.active
    assert session.turn is PlayerColor.white
    assert [(p.user_id, p.color) for p in session.players] == [
        (ALICE, PlayerColor.white),
        (BOB, PlayerColor.black),
    ]
    assert [e.name for e in events] == [ev.PLAYER_JOINED]
    assert set(events[0].audience.users) == {ALICE, BOB}
    assert events[0].audience.lobby is True


def test_join_public_rejections(machine) -> None:
    created, _ = machine.create_session(ALICE, PUBLIC)
    with pytest.raises(AlreadyJoinedError):
        machine.join_public(created.id, ALICE)

    private, _ = machine.create_session(BOB, CreateSessionRequest(visibility=Visibility.private))
    with pytest.raises(NotJoinableError):
        machine.join_public(private.id, ALICE)

    with pytest.raises(NotFoundError):
        machine.join_public(uuid4(), ALICE)


def test_join_full_game_always_fails_game_full(machine) -> None:
    session_id = _active(machine)
    for user in (CAROL, ALICE, BOB, CAROL):
        with pytest.raises(GameFullError):
            machine.join_public(session_id, user)
    assert len(machine.get_session(session_id).players) == 2


def test_accept_invitation(machine) -> None:
    created, _ = machine.create_session(
        ALICE, CreateSessionRequest(visibility=Visibility.private, invitee_username="Bob")
    )
    with pytest.raises(NotInvitedError):
        machine.accept_invitation(created.id, CAROL)

    session, events = machine.accept_invitation(created.id, BOB)
    assert session.status is SessionStatus.active
    assert session.player(BOB).color is PlayerColor.black
    assert events[0].audience.lobby is False

    with pytest.raises(InvalidStateError):
        machine.accept_invitation(created.id, BOB)


def test_decline_invitation_discards_session(machine) -> None:
    created, _ = machine.create_session(
        ALICE, CreateSessionRequest(visibility=Visibility.private, invitee_username="bob")
    )
    with pytest.raises(NotInvitedError):
        machine.decline_invitation(created.id, CAROL)

    _, events = machine.decline_invitation(created.id, BOB)
    assert [e.name for e in events] == [ev.INVITATION_DECLINED]
    assert events[0].audience.users == (ALICE,)
    assert events[0].payload["declinedBy"] == BOB
    with pytest.raises(NotFoundError):
        machine.get_session(created.id)


def test_cancel_open_session(machine) -> None:
    created, _ = machine.create_session(ALICE, PUBLIC)
    with pytest.raises(PlayerNotInSessionError):
        machine.cancel(created.id, BOB)

    _, events = machine.cancel(created.id, ALICE)
    assert events[0].name == ev.GAME_CANCELLED
    assert events[0].audience.lobby is True
    with pytest.raises(NotFoundError):
        machine.get_session(created.id)


def test_cancel_active_session_is_rejected(machine) -> None:
    session_id = _active(machine)
    with pytest.raises(InvalidStateError):
        machine.cancel(session_id, ALICE)


def test_moves_alternate_and_record_history(machine, oracle) -> None:
    session_id = _active(machine)
    session = _play(machine, session_id, ["e2e4", "e7e5", "g1f3"])

    assert session.turn is PlayerColor.black
    assert [m.san for m in session.history] == ["e4", "e5", "Nf3"]
    assert [m.played_by for m in session.history] == [ALICE, BOB, ALICE]
    assert list(session.position.moves) == [m.uci for m in session.history]
    assert session.current_fen == oracle.fen(session.position)

    board = chess.Board()
    for uci in ("e2e4", "e7e5", "g1f3"):
        board.push_uci(uci)
    assert session.current_fen == board.fen()


def test_move_out_of_turn_does_not_mutate(machine) -> None:
    session_id = _active(machine)
    before = machine.get_session(session_id)

    with pytest.raises(NotYourTurnError):
        machine.make_move(session_id, BOB, MoveSpec.from_uci("e7e5"))

    after = machine.get_session(session_id)
    assert after.position == before.position
    assert after.turn is before.turn
    assert after.history == before.history


def test_same_slot_replayed_by_opponent_fails(machine) -> None:
    session_id = _active(machine)
    machine.make_move(session_id, ALICE, MoveSpec.from_uci("e2e4"))
    machine.make_move(session_id, BOB, MoveSpec.from_uci("e7e5"))
    with pytest.raises(NotYourTurnError):
        machine.make_move(session_id, BOB, MoveSpec.from_uci("d7d5"))


def test_illegal_move_and_outsider(machine) -> None:
    session_id = _active(machine)
    with pytest.raises(IllegalMoveError):
        machine.make_move(session_id, ALICE, MoveSpec.from_uci("e2e5"))
    with pytest.raises(PlayerNotInSessionError):
        machine.make_move(session_id, CAROL, MoveSpec.from_uci("e2e4"))
    assert machine.get_session(session_id).history == []


def test_move_before_opponent_joins_is_invalid(machine) -> None:
    created, _ = machine.create_session(ALICE, PUBLIC)
    with pytest.raises(InvalidStateError):
        machine.make_move(created.id, ALICE, MoveSpec.from_uci("e2e4"))


def test_checkmate_sets_mover_as_winner(machine) -> None:
    session_id = _active(machine)
    for index, uci in enumerate(FOOLS_MATE[:-1]):
        machine.make_move(session_id, ALICE if index % 2 == 0 else BOB, MoveSpec.from_uci(uci))

    session, events = machine.make_move(session_id, BOB, MoveSpec.from_uci(FOOLS_MATE[-1]))

    assert session.status is SessionStatus.checkmate
    assert session.winner == BOB
    assert session.ended_at is not None
    assert [e.name for e in events] == [ev.STATE_UPDATED, ev.GAME_ENDED]
    assert events[1].payload == {"gameId": str(session_id), "reason": "checkmate", "winner": BOB}
    assert session.pgn().rstrip().endswith("0-1")


def test_check_is_recorded_on_the_move(machine) -> None:
    session_id = _active(machine)
    session = _play(machine, session_id, ["e2e4", "f7f6"])
    assert session.in_check is False

    session, events = machine.make_move(session_id, ALICE, MoveSpec.from_uci("d1h5"))

    assert session.status is SessionStatus.active
    assert session.history[-1].san == "Qh5+"
    assert session.history[-1].is_check is True
    assert [m.is_check for m in session.history] == [False, False, True]
    assert session.in_check is True
    assert events[0].session.in_check is True

    session, _ = machine.make_move(session_id, BOB, MoveSpec.from_uci("g7g6"))
    assert session.in_check is False


def test_stalemate_is_distinct_from_draw(identities) -> None:
    machine = _machine_from("7k/8/6K1/8/8/8/8/5Q2 w - - 0 1", identities)
    session_id = _active(machine)

    session, _ = machine.make_move(session_id, ALICE, MoveSpec.from_uci("f1f7"))

    assert session.status is SessionStatus.stalemate
    assert session.winner is None


def test_oracle_draw_by_insufficient_material(identities) -> None:
    machine = _machine_from("k7/8/8/8/8/8/1r6/KB6 w - - 0 1", identities)
    session_id = _active(machine)

    session, _ = machine.make_move(session_id, ALICE, MoveSpec.from_uci("a1b2"))

    assert session.status is SessionStatus.draw
    assert session.winner is None


def test_promotion_defaults_to_queen(identities) -> None:
    machine = _machine_from("k7/4P3/8/8/8/8/8/K7 w - - 0 1", identities)
    session_id = _active(machine)

    session, _ = machine.make_move(session_id, ALICE, MoveSpec(from_square="e7", to_square="e8"))

    assert session.history[-1].uci == "e7e8q"


def test_draw_offer_and_accept(machine) -> None:
    session_id = _active(machine)
    session, events = machine.offer_draw(session_id, ALICE)
    assert session.pending_draw_offerer == ALICE
    assert [e.name for e in events] == [ev.DRAW_OFFERED]

    session, events = machine.respond_to_draw(session_id, BOB, accepted=True)
    assert session.status is SessionStatus.draw
    assert session.winner is None
    assert session.pending_draw_offerer is None
    assert [e.name for e in events] == [ev.DRAW_RESPONDED, ev.STATE_UPDATED, ev.GAME_ENDED]


def test_repeated_offer_is_silent(machine) -> None:
    session_id = _active(machine)
    machine.offer_draw(session_id, ALICE)
    session, events = machine.offer_draw(session_id, ALICE)
    assert session.pending_draw_offerer == ALICE
    assert events == []


def test_cannot_respond_to_own_offer(machine) -> None:
    session_id = _active(machine)
    machine.offer_draw(session_id, ALICE)
    with pytest.raises(CannotRespondToOwnOfferError):
        machine.respond_to_draw(session_id, ALICE, accepted=True)
    assert machine.get_session(session_id).pending_draw_offerer == ALICE


def test_declined_draw_leaves_game_untouched(machine) -> None:
    session_id = _active(machine)
    machine.make_move(session_id, ALICE, MoveSpec.from_uci("d2d4"))
    machine.offer_draw(session_id, BOB)
    before = machine.get_session(session_id)

    session, events = machine.respond_to_draw(session_id, ALICE, accepted=False)

    assert session.status is SessionStatus.active
    assert session.pending_draw_offerer is None
    assert session.position == before.position
    assert session.turn is before.turn
    assert [e.name for e in events] == [ev.DRAW_RESPONDED]
    assert events[0].payload["accepted"] is False


def test_respond_without_offer(machine) -> None:
    session_id = _active(machine)
    with pytest.raises(NoPendingOfferError):
        machine.respond_to_draw(session_id, BOB, accepted=True)


@pytest.mark.parametrize("resigner, winner", [(ALICE, BOB), (BOB, ALICE)])
def test_resign_awards_other_participant(machine, resigner, winner) -> None:
    session_id = _active(machine)
    session, events = machine.resign(session_id, resigner)

    assert session.status is SessionStatus.resigned
    assert session.winner == winner
    assert events[-1].payload["resignedBy"] == resigner
    assert events[-1].payload["reason"] == "resign"


def test_outsider_cannot_resign_or_offer(machine) -> None:
    session_id = _active(machine)
    with pytest.raises(PlayerNotInSessionError):
        machine.resign(session_id, CAROL)
    with pytest.raises(PlayerNotInSessionError):
        machine.offer_draw(session_id, CAROL)


def _terminal_sessions(machine, identities):
    resigned = _active(machine)
    machine.resign(resigned, ALICE)

    drawn = _active(machine)
    machine.offer_draw(drawn, ALICE)
    machine.respond_to_draw(drawn, BOB, accepted=True)

    mated = _active(machine)
    _play(machine, mated, FOOLS_MATE)

    stale_machine = _machine_from("7k/8/6K1/8/8/8/8/5Q2 w - - 0 1", identities)
    stalemated = _active(stale_machine)
    stale_machine.make_move(stalemated, ALICE, MoveSpec.from_uci("f1f7"))

    return [(machine, resigned), (machine, drawn), (machine, mated), (stale_machine, stalemated)]


def test_terminal_sessions_reject_every_mutation(machine, identities) -> None:
    for owner, session_id in _terminal_sessions(machine, identities):
        before = owner.get_session(session_id)
        assert before.status.is_terminal

        with pytest.raises(GameOverError):
            owner.make_move(session_id, ALICE, MoveSpec.from_uci("a2a3"))
        with pytest.raises(GameOverError):
            owner.make_move(session_id, BOB, MoveSpec.from_uci("a7a6"))
        with pytest.raises(GameOverError):
            owner.offer_draw(session_id, ALICE)
        with pytest.raises(GameOverError):
            owner.respond_to_draw(session_id, BOB, accepted=True)
        with pytest.raises(GameOverError):
            owner.resign(session_id, BOB)
        with pytest.raises(GameOverError):
            owner.cancel(session_id, ALICE)

        after = owner.get_session(session_id)
        assert after.status is before.status
        assert after.winner == before.winner


def test_suggest_move_for_player_to_move(store, oracle, identities) -> None:
    machine = GameSessionStateMachine(store, oracle, identities, RandomMoveSuggester(seed=1))
    session_id = _active(machine)

    suggestion = machine.suggest_move(session_id, ALICE)
    assert suggestion.move in chess.Board().legal_moves

    with pytest.raises(NotYourTurnError):
        machine.suggest_move(session_id, BOB)


def test_suggest_move_without_suggester(machine) -> None:
    session_id = _active(machine)
    with pytest.raises(SuggestionUnavailableError):
        machine.suggest_move(session_id, ALICE)


def test_private_session_visible_to_players_and_invitee_only(machine) -> None:
    invite, _ = machine.create_session(
        ALICE, CreateSessionRequest(visibility=Visibility.private, invitee_username="bob")
    )

    assert machine.view_session(invite.id, ALICE).id == invite.id
    assert machine.view_session(invite.id, BOB).id == invite.id
    with pytest.raises(PlayerNotInSessionError):
        machine.view_session(invite.id, CAROL)

    public, _ = machine.create_session(ALICE, PUBLIC)
    assert machine.view_session(public.id, CAROL).id == public.id

    with pytest.raises(NotFoundError):
        machine.view_session(uuid4(), ALICE)

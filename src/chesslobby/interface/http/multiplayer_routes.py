from __future__ import annotations

from typing import Any
from uuid import uuid4

from flask import Blueprint, g, jsonify, request

from src.chesslobby.domain.multiplayer import InvalidRequestError, SessionError
from src.chesslobby.interface.http.auth import require_user
from src.chesslobby.interface.http.errors import domain_error_response
from src.chesslobby.interface.requests import (
    parse_accepted,
    parse_create_request,
    parse_move,
    parse_session_id,
)
from src.chesslobby.interface.serialization import (
    serialize_history_entry,
    serialize_invitation,
    serialize_lobby_entry,
    serialize_session,
    serialize_suggestion,
)
from src.chesslobby.interface.services import current_services
from src.chesslobby.interface.telemetry.logging import bind_request_context, bind_trace, get_logger

multiplayer_bp = Blueprint("multiplayer", __name__)
logger = get_logger("chesslobby.api.multiplayer")


@multiplayer_bp.before_request
def _assign_trace_id() -> None:
    g.trace_id = request.headers.get("X-Trace-Id") or uuid4().hex
    bind_request_context(g.trace_id, method=request.method, path=request.path)


@multiplayer_bp.errorhandler(SessionError)
def _handle_domain_error(exc: SessionError):
    log = bind_trace(logger, user_id=g.get("user_id"))
    log.warning("request_rejected", code=exc.code, detail=str(exc))
    return domain_error_response(exc, trace_id=g.get("trace_id"))


def _log(**context: Any):
    return bind_trace(logger, user_id=g.get("user_id"), **context)


def _payload() -> dict[str, Any]:
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object.")
    return payload


def _respond(session, events, status: int = 200):
    current_services().dispatcher.dispatch(events)
    body = serialize_session(session)
    body["traceId"] = g.trace_id
    return jsonify(body), status


@multiplayer_bp.post("/games")
@require_user
def create_game():
    create_request = parse_create_request(_payload())
    session, events = current_services().machine.create_session(g.user_id, create_request)
    _log(session_id=str(session.id)).info(
        "session_created",
        visibility=session.visibility.value,
        invited=session.invited_identity is not None,
    )
    return _respond(session, events, status=201)


@multiplayer_bp.get("/games")
@require_user
def list_open_games():
    entries = current_services().lobby.list_public_open()
    return jsonify({"games": [serialize_lobby_entry(entry) for entry in entries]}), 200


@multiplayer_bp.get("/games/<session_id>")
@require_user
def get_game(session_id: str):
    session = current_services().machine.view_session(parse_session_id(session_id), g.user_id)
    return jsonify(serialize_session(session)), 200


@multiplayer_bp.delete("/games/<session_id>")
@require_user
def cancel_game(session_id: str):
    session, events = current_services().machine.cancel(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("session_cancelled")
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/join")
@require_user
def join_game(session_id: str):
    session, events = current_services().machine.join_public(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("player_joined", players=len(session.players))
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/invitation/accept")
@require_user
def accept_invitation(session_id: str):
    session, events = current_services().machine.accept_invitation(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("invitation_accepted")
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/invitation/decline")
@require_user
def decline_invitation(session_id: str):
    session, events = current_services().machine.decline_invitation(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("invitation_declined", creator=session.created_by)
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/moves")
@require_user
def make_move(session_id: str):
    move = parse_move(_payload())
    session, events = current_services().machine.make_move(parse_session_id(session_id), g.user_id, move)
    _log(session_id=session_id).info(
        "move_accepted",
        uci=session.history[-1].uci,
        total_moves=len(session.history),
        status=session.status.value,
    )
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/draw/offer")
@require_user
def offer_draw(session_id: str):
    session, events = current_services().machine.offer_draw(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("draw_offered", repeated=not events)
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/draw/respond")
@require_user
def respond_to_draw(session_id: str):
    accepted = parse_accepted(_payload())
    session, events = current_services().machine.respond_to_draw(
        parse_session_id(session_id), g.user_id, accepted
    )
    _log(session_id=session_id).info("draw_responded", accepted=accepted)
    return _respond(session, events)


@multiplayer_bp.post("/games/<session_id>/resign")
@require_user
def resign(session_id: str):
    session, events = current_services().machine.resign(parse_session_id(session_id), g.user_id)
    _log(session_id=session_id).info("session_resigned", winner=session.winner)
    return _respond(session, events)


@multiplayer_bp.get("/games/<session_id>/suggestion")
@require_user
def suggest_move(session_id: str):
    suggestion = current_services().machine.suggest_move(parse_session_id(session_id), g.user_id)
    return jsonify(serialize_suggestion(suggestion)), 200


@multiplayer_bp.get("/invitations")
@require_user
def list_invitations():
    entries = current_services().lobby.invitations_for(g.user_id)
    return jsonify({"invitations": [serialize_invitation(entry) for entry in entries]}), 200


@multiplayer_bp.get("/history")
@require_user
def game_history():
    entries = current_services().lobby.history_for(g.user_id)
    return jsonify({"games": [serialize_history_entry(entry) for entry in entries]}), 200


__all__ = ["multiplayer_bp"]

"""Socket.IO relay: forwards client commands to the state machine and fans out events."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable
from uuid import uuid4

from flask import Flask, request
from flask_socketio import ConnectionRefusedError, SocketIO, join_room, leave_room

from src.chesslobby.domain.multiplayer import (
    Audience,
    Event,
    InvalidRequestError,
    SessionError,
    SessionStatus,
    UnauthorizedError,
)
from src.chesslobby.domain.multiplayer.events import OPPONENT_DISCONNECTED
from src.chesslobby.infrastructure.config import AppConfig
from src.chesslobby.interface.http.auth import identity_from
from src.chesslobby.interface.realtime.connections import ConnectionRegistry
from src.chesslobby.interface.realtime.dispatcher import LOBBY_ROOM, user_room
from src.chesslobby.interface.requests import (
    parse_accepted,
    parse_create_request,
    parse_move,
    parse_session_id,
)
from src.chesslobby.interface.serialization import (
    serialize_error,
    serialize_lobby_entry,
    serialize_session,
)
from src.chesslobby.interface.services import MultiplayerServices
from src.chesslobby.interface.telemetry.logging import bind_request_context, bind_trace, get_logger

logger = get_logger("chesslobby.relay")

Command = Callable[[str, dict[str, Any]], dict[str, Any]]


def create_socketio(app: Flask, services: MultiplayerServices, config: AppConfig) -> SocketIO:
    """Attach a Socket.IO server to ``app`` and wire it to the dispatcher."""
    socketio = SocketIO(
        app,
        async_mode=config.socketio_async_mode,
        cors_allowed_origins=list(config.socketio_cors_origins),
    )
    connections = ConnectionRegistry()
    services.dispatcher.bind(socketio)
    register_handlers(socketio, services, connections)
    app.extensions["chesslobby_connections"] = connections
    return socketio


def register_handlers(
    socketio: SocketIO,
    services: MultiplayerServices,
    connections: ConnectionRegistry,
) -> None:
    machine = services.machine

    @socketio.on("connect")
    def on_connect(auth: dict[str, Any] | None = None):
        values = dict(request.args)
        if isinstance(auth, dict):
            values.update({k: v for k, v in auth.items() if isinstance(v, str)})
        try:
            user_id = identity_from(values, id_key="userId", name_key="username")
        except UnauthorizedError as exc:
            logger.warning("connection_refused", sid=request.sid, detail=str(exc))
            raise ConnectionRefusedError(serialize_error(exc)) from exc

        connections.add(request.sid, user_id)
        join_room(user_room(user_id))
        logger.info("client_connected", sid=request.sid, user_id=user_id)

    @socketio.on("disconnect")
    def on_disconnect(reason: Any = None):
        user_id, last_connection = connections.remove(request.sid)
        logger.info("client_disconnected", sid=request.sid, user_id=user_id, reason=str(reason))
        if user_id is None or not last_connection:
            return

        events = []
        for session in services.store.sessions_for_user(user_id):
            if session.status is not SessionStatus.active:
                continue
            opponent = session.opponent_of(user_id)
            if opponent is None:
                continue
            events.append(
                Event(
                    OPPONENT_DISCONNECTED,
                    Audience.user(opponent.user_id),
                    payload={"gameId": str(session.id), "userId": user_id},
                )
            )
        services.dispatcher.dispatch(events)

    def command(event_name: str) -> Callable[[Command], Command]:
        def decorator(fn: Command) -> Command:
            @wraps(fn)
            def handler(data: Any = None):
                user_id = connections.user_for(request.sid)
                bind_request_context(uuid4().hex, sid=request.sid, command=event_name)
                log = bind_trace(logger, user_id=user_id)
                try:
                    if user_id is None:
                        raise UnauthorizedError("Connection has no verified identity.")
                    if data is not None and not isinstance(data, dict):
                        raise InvalidRequestError("Command payload must be an object.")
                    result = fn(user_id, data or {})
                except SessionError as exc:
                    log.warning("command_rejected", code=exc.code, detail=str(exc))
                    return {"ok": False, "error": serialize_error(exc)}
                log.info("command_applied")
                return {"ok": True, **result}

            socketio.on_event(event_name, handler)
            return fn

        return decorator

    def _commit(outcome) -> dict[str, Any]:
        session, events = outcome
        services.dispatcher.dispatch(events)
        return {"game": serialize_session(session)}

    @command("lobby:subscribe")
    def subscribe_lobby(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        join_room(LOBBY_ROOM)
        return {"games": [serialize_lobby_entry(entry) for entry in services.lobby.list_public_open()]}

    @command("lobby:unsubscribe")
    def unsubscribe_lobby(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        leave_room(LOBBY_ROOM)
        return {}

    @command("game:create")
    def create_game(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.create_session(user_id, parse_create_request(payload)))

    @command("game:join")
    def join_game(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.join_public(parse_session_id(payload.get("gameId")), user_id))

    @command("game:acceptInvitation")
    def accept_invitation(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.accept_invitation(parse_session_id(payload.get("gameId")), user_id))

    @command("game:declineInvitation")
    def decline_invitation(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.decline_invitation(parse_session_id(payload.get("gameId")), user_id))

    @command("game:cancel")
    def cancel_game(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.cancel(parse_session_id(payload.get("gameId")), user_id))

    @command("game:move")
    def make_move(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        session_id = parse_session_id(payload.get("gameId"))
        move = payload.get("move", payload)
        if not isinstance(move, dict):
            raise InvalidRequestError("move must be an object.")
        return _commit(machine.make_move(session_id, user_id, parse_move(move)))

    @command("game:offerDraw")
    def offer_draw(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.offer_draw(parse_session_id(payload.get("gameId")), user_id))

    @command("game:respondDraw")
    def respond_draw(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        session_id = parse_session_id(payload.get("gameId"))
        return _commit(machine.respond_to_draw(session_id, user_id, parse_accepted(payload)))

    @command("game:resign")
    def resign(user_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return _commit(machine.resign(parse_session_id(payload.get("gameId")), user_id))


__all__ = ["create_socketio", "register_handlers"]

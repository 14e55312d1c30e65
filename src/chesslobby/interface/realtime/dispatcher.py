from __future__ import annotations

from typing import Any, Iterable, Protocol

from src.chesslobby.domain.multiplayer import Event, LobbyIndex
from src.chesslobby.domain.multiplayer.events import LOBBY_UPDATED, touches_lobby
from src.chesslobby.interface.serialization import serialize_event, serialize_lobby_entry
from src.chesslobby.interface.telemetry.logging import get_logger

LOBBY_ROOM = "lobby"

logger = get_logger("chesslobby.relay.dispatcher")


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


class Emitter(Protocol):
    def emit(self, event: str, data: Any = None, *, to: Any = None, **kwargs: Any) -> None:
        ...


class EventDispatcher:
    """Deliver committed state-machine events to user rooms and the lobby room.

    Must be called after the store mutation has committed; it never touches
    the session store itself except to rebuild the lobby listing.
    """

    def __init__(self, emitter: Emitter | None, lobby: LobbyIndex) -> None:
        self._emitter = emitter
        self._lobby = lobby

    def bind(self, emitter: Emitter) -> None:
        self._emitter = emitter

    def dispatch(self, events: Iterable[Event]) -> None:
        events = list(events)
        if not events:
            return
        if self._emitter is None:
            # Events are only produced after commit; dropping them must not fail the caller.
            logger.error("events_dropped", reason="no_emitter", names=[event.name for event in events])
            return

        for event in events:
            rooms = [user_room(user_id) for user_id in event.audience.users]
            if event.audience.lobby:
                rooms.append(LOBBY_ROOM)
            if not rooms:
                continue
            self._emitter.emit(event.name, serialize_event(event), to=rooms)
            logger.debug("event_emitted", name=event.name, rooms=rooms)

        if touches_lobby(events):
            self.publish_lobby()

    def publish_lobby(self) -> None:
        games = [serialize_lobby_entry(entry) for entry in self._lobby.list_public_open()]
        self._emitter.emit(LOBBY_UPDATED, {"games": games}, to=LOBBY_ROOM)
        logger.debug("lobby_published", open_games=len(games))


__all__ = ["EventDispatcher", "Emitter", "LOBBY_ROOM", "user_room"]

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from src.chesslobby.domain.chess import MoveSuggester, PythonChessOracle, RandomMoveSuggester, RuleOracle
from src.chesslobby.domain.multiplayer import GameSessionStateMachine, LobbyIndex, SessionStore
from src.chesslobby.infrastructure.config import AppConfig
from src.chesslobby.infrastructure.persistence.base import create_session_factory
from src.chesslobby.infrastructure.persistence.user_repository import SqlAlchemyIdentityDirectory
from src.chesslobby.interface.realtime.dispatcher import EventDispatcher

EXTENSION_KEY = "chesslobby"


@dataclass(frozen=True)
class MultiplayerServices:
    """Object graph shared by the HTTP and socket boundaries of one app instance."""

    identities: SqlAlchemyIdentityDirectory
    oracle: RuleOracle
    store: SessionStore
    machine: GameSessionStateMachine
    lobby: LobbyIndex
    dispatcher: EventDispatcher


def build_services(
    config: AppConfig,
    engine,
    *,
    oracle: RuleOracle | None = None,
    suggester: MoveSuggester | None = None,
) -> MultiplayerServices:
    identities = SqlAlchemyIdentityDirectory(create_session_factory(engine))
    oracle = oracle or PythonChessOracle()
    suggester = suggester or RandomMoveSuggester(seed=config.suggester_seed)
    store = SessionStore(identities, oracle.initial_position)
    lobby = LobbyIndex(store)
    return MultiplayerServices(
        identities=identities,
        oracle=oracle,
        store=store,
        machine=GameSessionStateMachine(store, oracle, identities, suggester),
        lobby=lobby,
        dispatcher=EventDispatcher(None, lobby),
    )


def current_services() -> MultiplayerServices:
    services = current_app.extensions.get(EXTENSION_KEY)
    if services is None:
        raise RuntimeError("Multiplayer services are not initialised for this app.")
    return services


__all__ = ["EXTENSION_KEY", "MultiplayerServices", "build_services", "current_services"]

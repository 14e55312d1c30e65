from __future__ import annotations

import pytest
from sqlalchemy.orm import sessionmaker

from src.chesslobby.domain.chess import PythonChessOracle
from src.chesslobby.domain.multiplayer import GameSessionStateMachine, LobbyIndex, SessionStore
from src.chesslobby.infrastructure.config import AppConfig
from src.chesslobby.infrastructure.persistence.base import (
    Base,
    create_engine_from_config,
)
from src.chesslobby.infrastructure.persistence import user_repository  # noqa: F401
from src.chesslobby.infrastructure.persistence.user_repository import SqlAlchemyIdentityDirectory
from src.chesslobby.interface.http.app import create_app

ALICE = "user_alice"
BOB = "user_bob"
CAROL = "user_carol"


@pytest.fixture(scope="session")
def app_config() -> AppConfig:
    """Provide a configuration tuned for isolated tests."""
    return AppConfig(
        database_url="sqlite+pysqlite:///:memory:",
        flask_env="test",
        socketio_async_mode="threading",
        suggester_seed=7,
        additional={"STRUCTLOG_LEVEL": "WARNING"},
    )


@pytest.fixture
def engine(app_config: AppConfig):
    engine = create_engine_from_config(app_config)
    Base.metadata.create_all(bind=engine)
    return engine


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture
def identities(session_factory) -> SqlAlchemyIdentityDirectory:
    directory = SqlAlchemyIdentityDirectory(session_factory)
    directory.register(ALICE, "Alice")
    directory.register(BOB, "Bob")
    directory.register(CAROL, "Carol")
    return directory


@pytest.fixture
def oracle() -> PythonChessOracle:
    return PythonChessOracle()


@pytest.fixture
def store(identities, oracle) -> SessionStore:
    return SessionStore(identities, oracle.initial_position)


@pytest.fixture
def machine(store, oracle, identities) -> GameSessionStateMachine:
    return GameSessionStateMachine(store, oracle, identities)


@pytest.fixture
def lobby(store) -> LobbyIndex:
    return LobbyIndex(store)


@pytest.fixture
def app(app_config: AppConfig):
    flask_app = create_app(app_config)
    flask_app.config.update(TESTING=True)
    directory = flask_app.extensions["chesslobby"].identities
    directory.register(ALICE, "Alice")
    directory.register(BOB, "Bob")
    directory.register(CAROL, "Carol")
    return flask_app

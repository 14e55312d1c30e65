from __future__ import annotations

from typing import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import declarative_base, sessionmaker

from src.chesslobby.infrastructure.config import AppConfig, load_config

Base = declarative_base()


def create_engine_from_config(config: AppConfig | None = None):
    """Create a SQLAlchemy engine using the provided configuration."""
    cfg = config or load_config()
    engine_kwargs: dict = {"pool_pre_ping": True, "future": True}

    if cfg.database_url.startswith("sqlite"):
        engine_kwargs.update(
            {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        )

    return create_engine(cfg.database_url, **engine_kwargs)


def create_session_factory(engine) -> sessionmaker:
    """Produce a session factory tied to the given engine."""
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@contextmanager
def session_scope(factory: sessionmaker) -> Iterator:
    """Provide a transactional session scope."""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "Base",
    "create_engine_from_config",
    "create_session_factory",
    "session_scope",
]

from __future__ import annotations

from dataclasses import dataclass, field
import os


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Centralized runtime configuration for the multiplayer service."""

    database_url: str
    flask_env: str = "production"
    socketio_async_mode: str = "threading"
    socketio_cors_origins: tuple[str, ...] = ("*",)
    suggester_seed: int | None = None
    additional: dict[str, str] = field(default_factory=dict)


def load_config(prefix: str = "") -> AppConfig:
    """Load application configuration from environment variables."""

    def _get_env(key: str, default: str = "") -> str:
        env_key = f"{prefix}{key}"
        return os.getenv(env_key, default)

    database_url = _get_env("DATABASE_URL", "sqlite+pysqlite:///chesslobby.db")

    origins_raw = _get_env("SOCKETIO_CORS_ORIGINS", "*")
    origins = tuple(origin.strip() for origin in origins_raw.split(",") if origin.strip())

    def _parse_int(raw: str) -> int | None:
        try:
            return int(raw)
        except (TypeError, ValueError):
            return None

    additional_keys = (
        "STRUCTLOG_LEVEL",
        "SECRET_KEY",
    )
    additional: dict[str, str] = {}
    for key in additional_keys:
        value = _get_env(key, "")
        if value:
            additional[key] = value

    return AppConfig(
        database_url=database_url,
        flask_env=_get_env("FLASK_ENV", "production"),
        socketio_async_mode=_get_env("SOCKETIO_ASYNC_MODE", "threading"),
        socketio_cors_origins=origins or ("*",),
        suggester_seed=_parse_int(_get_env("SUGGESTER_SEED", "")),
        additional=additional,
    )


__all__ = ["AppConfig", "load_config"]

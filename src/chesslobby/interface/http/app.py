from __future__ import annotations

from flask import Flask

from src.chesslobby.domain.chess import MoveSuggester, RuleOracle
from src.chesslobby.infrastructure.config import AppConfig, load_config
from src.chesslobby.infrastructure.persistence.base import Base, create_engine_from_config
from src.chesslobby.interface.http.multiplayer_routes import multiplayer_bp
from src.chesslobby.interface.realtime.relay import create_socketio
from src.chesslobby.interface.services import EXTENSION_KEY, build_services
from src.chesslobby.interface.telemetry.logging import get_logger, setup_logging


def create_app(
    config: AppConfig | None = None,
    *,
    oracle: RuleOracle | None = None,
    suggester: MoveSuggester | None = None,
) -> Flask:
    """Instantiate the Flask application, its services and the Socket.IO relay."""
    cfg = config or load_config()

    setup_logging(
        cfg.additional.get("STRUCTLOG_LEVEL", "INFO"),
        json=cfg.flask_env != "development",
    )
    logger = get_logger("chesslobby.app")

    app = Flask(__name__)
    app.config.update(
        DATABASE_URL=cfg.database_url,
        ENV=cfg.flask_env,
        APP_CONFIG=cfg,
    )
    if "SECRET_KEY" in cfg.additional:
        app.config["SECRET_KEY"] = cfg.additional["SECRET_KEY"]

    engine = create_engine_from_config(cfg)
    Base.metadata.create_all(bind=engine)

    services = build_services(cfg, engine, oracle=oracle, suggester=suggester)
    app.extensions[EXTENSION_KEY] = services

    app.register_blueprint(multiplayer_bp, url_prefix="/api/v1/multiplayer")
    create_socketio(app, services, cfg)

    @app.get("/healthz")
    def healthcheck():
        return {"status": "ok", "sessions": len(services.store)}, 200

    logger.info(
        "flask_app_initialized",
        env=cfg.flask_env,
        socketio_async_mode=cfg.socketio_async_mode,
    )
    return app


__all__ = ["create_app"]

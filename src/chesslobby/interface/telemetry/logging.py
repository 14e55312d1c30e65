"""structlog setup shared by the HTTP API, the Socket.IO relay and the CLI."""

from __future__ import annotations

from typing import Any
import logging
import sys
import structlog


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_logging(level: int | str = "INFO", *, json: bool = True) -> None:
    """Configure structlog; JSON lines by default, key=value lines when ``json`` is off."""
    min_level = _resolve_level(level)
    logging.basicConfig(
        format="%(message)s",
        level=min_level,
        stream=sys.stdout,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None):
    return structlog.get_logger(name or "chesslobby")


def bind_trace(logger: Any, trace_id: str | None = None, **kwargs) -> Any:
    """Attach trace metadata to a logger for request correlation."""
    context = {"trace_id": trace_id} if trace_id else {}
    context.update({key: value for key, value in kwargs.items() if value is not None})
    return logger.bind(**context)


def bind_request_context(trace_id: str, **values: Any) -> None:
    """Reset the per-thread log context and seed it for the request or socket command in flight."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        trace_id=trace_id,
        **{key: value for key, value in values.items() if value is not None},
    )


__all__ = ["bind_request_context", "bind_trace", "get_logger", "setup_logging"]

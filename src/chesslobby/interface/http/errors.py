"""Mapping from domain error kinds to HTTP statuses."""

from __future__ import annotations

from typing import Any

from flask import jsonify

from src.chesslobby.domain.multiplayer import ErrorKind, SessionError
from src.chesslobby.interface.serialization import serialize_error

HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.not_found: 404,
    ErrorKind.invalid_invitee: 404,
    ErrorKind.unauthorized: 401,
    ErrorKind.not_invited: 403,
    ErrorKind.player_not_in_session: 403,
    ErrorKind.not_your_turn: 403,
    ErrorKind.cannot_respond_to_own_offer: 403,
    ErrorKind.not_joinable: 409,
    ErrorKind.game_full: 409,
    ErrorKind.already_joined: 409,
    ErrorKind.invalid_state: 409,
    ErrorKind.illegal_move: 409,
    ErrorKind.no_pending_offer: 409,
    ErrorKind.game_over: 409,
    ErrorKind.invalid_request: 400,
    ErrorKind.suggestion_unavailable: 503,
}

_missing = set(ErrorKind) - set(HTTP_STATUS_BY_KIND)
if _missing:  # pragma: no cover - import-time guard
    raise RuntimeError(f"No HTTP status mapped for error kinds: {sorted(k.value for k in _missing)}")


def status_for(kind: ErrorKind) -> int:
    return HTTP_STATUS_BY_KIND[kind]


def domain_error_response(exc: SessionError, trace_id: str | None = None):
    payload: dict[str, Any] = serialize_error(exc)
    if trace_id is not None:
        payload["traceId"] = trace_id
    return jsonify(payload), status_for(exc.kind)


__all__ = ["HTTP_STATUS_BY_KIND", "domain_error_response", "status_for"]

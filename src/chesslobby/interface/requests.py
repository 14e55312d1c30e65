"""Request parsing shared by the HTTP and socket boundaries."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from src.chesslobby.domain.chess import MoveSpec
from src.chesslobby.domain.multiplayer import (
    CreateSessionRequest,
    InvalidRequestError,
    NotFoundError,
    Visibility,
)


def parse_session_id(raw: Any) -> UUID:
    if not isinstance(raw, str) or not raw:
        raise InvalidRequestError("gameId is required.")
    try:
        return UUID(raw)
    except ValueError as exc:
        # An id that cannot exist is reported like any other unknown session.
        raise NotFoundError(f"Session {raw} not found.") from exc


def parse_create_request(payload: dict[str, Any]) -> CreateSessionRequest:
    raw_visibility = payload.get("visibility", payload.get("gameType", "public"))
    try:
        visibility = Visibility(raw_visibility)
    except ValueError as exc:
        raise InvalidRequestError("visibility must be 'public' or 'private'.") from exc

    invitee = payload.get("inviteeUsername")
    if invitee is not None and not isinstance(invitee, str):
        raise InvalidRequestError("inviteeUsername must be a string.")
    return CreateSessionRequest(visibility=visibility, invitee_username=(invitee or "").strip() or None)


def parse_move(payload: dict[str, Any]) -> MoveSpec:
    try:
        return MoveSpec.from_payload(payload)
    except ValueError as exc:
        raise InvalidRequestError(str(exc)) from exc


def parse_accepted(payload: dict[str, Any]) -> bool:
    accepted = payload.get("accepted")
    if not isinstance(accepted, bool):
        raise InvalidRequestError("accepted must be a boolean.")
    return accepted


__all__ = ["parse_accepted", "parse_create_request", "parse_move", "parse_session_id"]

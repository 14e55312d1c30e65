from __future__ import annotations

from typing import Any

from src.chesslobby.domain.chess import MoveSuggestion
from src.chesslobby.domain.multiplayer import (
    Event,
    HistoryEntry,
    InvitationEntry,
    LobbyEntry,
    Session,
    SessionError,
)


def serialize_session(session: Session) -> dict[str, Any]:
    return {
        "id": str(session.id),
        "visibility": session.visibility.value,
        "status": session.status.value,
        "players": [
            {
                "userId": player.user_id,
                "displayName": player.display_name,
                "color": player.color.value,
            }
            for player in session.players
        ],
        "turn": session.turn.value,
        "currentFen": session.current_fen,
        "isCheck": session.in_check,
        "initialFen": session.position.initial_fen,
        "moves": [
            {
                "san": move.san,
                "uci": move.uci,
                "playedBy": move.played_by,
                "fenAfter": move.fen_after,
                "isCheck": move.is_check,
                "timestamp": move.timestamp.isoformat(),
            }
            for move in session.history
        ],
        "pgn": session.pgn(),
        "createdBy": session.created_by,
        "invitedUserId": session.invited_identity,
        "winner": session.winner,
        "pendingDrawOfferer": session.pending_draw_offerer,
        "createdAt": session.created_at.isoformat(),
        "updatedAt": session.updated_at.isoformat(),
        "endedAt": session.ended_at.isoformat() if session.ended_at else None,
    }


def serialize_lobby_entry(entry: LobbyEntry) -> dict[str, Any]:
    payload = serialize_session(entry.session)
    payload["timeSinceCreation"] = entry.time_since_creation
    return payload


def serialize_invitation(entry: InvitationEntry) -> dict[str, Any]:
    return {
        "gameId": str(entry.session_id),
        "invitingUserId": entry.inviting_user_id,
        "invitingUserName": entry.inviting_user_name,
        "timeSinceCreation": entry.time_since_creation,
    }


def serialize_history_entry(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "gameId": str(entry.session_id),
        "opponent": entry.opponent_name,
        "color": entry.color.value,
        "result": entry.result,
        "status": entry.status.value,
        "date": entry.played_at.date().isoformat(),
    }


def serialize_suggestion(suggestion: MoveSuggestion) -> dict[str, Any]:
    return {
        "uci": suggestion.move.uci(),
        "san": suggestion.san,
        "rationale": list(suggestion.rationale or []),
    }


def serialize_event(event: Event) -> dict[str, Any]:
    payload: dict[str, Any] = dict(event.payload)
    if event.session is not None:
        payload.setdefault("gameId", str(event.session.id))
        payload["game"] = serialize_session(event.session)
    return payload


def serialize_error(exc: SessionError) -> dict[str, Any]:
    return {"code": exc.code, "message": str(exc)}


__all__ = [
    "serialize_error",
    "serialize_event",
    "serialize_history_entry",
    "serialize_invitation",
    "serialize_lobby_entry",
    "serialize_session",
    "serialize_suggestion",
]

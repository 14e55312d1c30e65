"""Trusted identity hand-off from the upstream authentication middleware.

The middleware in front of this service verifies the caller and forwards the
verified identifier in ``X-User-Id`` (and, when known, the username in
``X-User-Name``). This module only refuses requests that arrive without one.
"""

from __future__ import annotations

from functools import wraps
from typing import Callable, Mapping, TypeVar

from flask import g, request

from src.chesslobby.domain.multiplayer import UnauthorizedError
from src.chesslobby.infrastructure.persistence.user_repository import UsernameTakenError
from src.chesslobby.interface.services import current_services
from src.chesslobby.interface.telemetry.logging import get_logger

USER_ID_HEADER = "X-User-Id"
USER_NAME_HEADER = "X-User-Name"

logger = get_logger("chesslobby.auth")

F = TypeVar("F", bound=Callable)


def identity_from(values: Mapping[str, str | None], *, id_key: str, name_key: str) -> str:
    """Return the verified user id from ``values``, syncing the username if present."""
    user_id = (values.get(id_key) or "").strip()
    if not user_id:
        raise UnauthorizedError("A verified user identity is required.")

    username = (values.get(name_key) or "").strip()
    if username:
        directory = current_services().identities
        account = directory.get(user_id)
        if account is None or account.username != username.lower():
            try:
                directory.register(user_id, username)
            except UsernameTakenError as exc:
                # The verified id still authenticates the caller; the existing owner keeps the name.
                logger.warning("username_sync_skipped", user_id=user_id, username=username, detail=str(exc))
    return user_id


def require_user(view: F) -> F:
    """Resolve the caller before the view runs; the id is exposed as ``g.user_id``."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.user_id = identity_from(request.headers, id_key=USER_ID_HEADER, name_key=USER_NAME_HEADER)
        return view(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


__all__ = ["USER_ID_HEADER", "USER_NAME_HEADER", "identity_from", "require_user"]

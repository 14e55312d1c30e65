from __future__ import annotations

import threading
from collections import defaultdict
from typing import Dict, Set


class ConnectionRegistry:
    """Track which socket ids belong to which verified user."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._user_by_sid: Dict[str, str] = {}
        self._sids_by_user: Dict[str, Set[str]] = defaultdict(set)

    def add(self, sid: str, user_id: str) -> None:
        with self._lock:
            self._user_by_sid[sid] = user_id
            self._sids_by_user[user_id].add(sid)

    def remove(self, sid: str) -> tuple[str | None, bool]:
        """Forget ``sid``; returns its user and whether that user has no connections left."""
        with self._lock:
            user_id = self._user_by_sid.pop(sid, None)
            if user_id is None:
                return None, False
            sids = self._sids_by_user.get(user_id, set())
            sids.discard(sid)
            if not sids:
                self._sids_by_user.pop(user_id, None)
                return user_id, True
            return user_id, False

    def user_for(self, sid: str) -> str | None:
        with self._lock:
            return self._user_by_sid.get(sid)

    def is_connected(self, user_id: str) -> bool:
        with self._lock:
            return bool(self._sids_by_user.get(user_id))


__all__ = ["ConnectionRegistry"]

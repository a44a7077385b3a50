# coachdesk/sessions.py
import secrets
import time
from typing import Any, Dict, Optional, Tuple


class MemorySessionStore:
    """Login sessions kept in process memory.

    Entries expire ``ttl`` seconds after their last write; expired entries
    are pruned lazily, at most once every ``check_period`` seconds.
    """

    def __init__(self, ttl: int = 86400, check_period: int = 86400, clock=time.monotonic):
        self.ttl = ttl
        self.check_period = check_period
        self._clock = clock
        self._sessions: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._last_prune = clock()

    def create(self, data: Dict[str, Any]) -> str:
        sid = secrets.token_urlsafe(32)
        self.set(sid, data)
        return sid

    def set(self, sid: str, data: Dict[str, Any]):
        self._maybe_prune()
        self._sessions[sid] = (self._clock() + self.ttl, dict(data))

    def get(self, sid: str) -> Optional[Dict[str, Any]]:
        self._maybe_prune()
        entry = self._sessions.get(sid)
        if entry is None:
            return None
        expires_at, data = entry
        if expires_at <= self._clock():
            del self._sessions[sid]
            return None
        return dict(data)

    def destroy(self, sid: str):
        self._sessions.pop(sid, None)

    def prune(self):
        now = self._clock()
        for sid in [s for s, (expires_at, _) in self._sessions.items() if expires_at <= now]:
            del self._sessions[sid]
        self._last_prune = now

    def _maybe_prune(self):
        if self._clock() - self._last_prune >= self.check_period:
            self.prune()

    def __len__(self):
        return len(self._sessions)

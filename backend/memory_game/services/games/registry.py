import logging
import secrets
import threading
import time
from typing import Callable, Dict, List, Optional, Tuple

from .session import GameSession

logger = logging.getLogger(__name__)


def generate_session_id(length=8):
    """Short URL-safe id used in routes and Socket.IO room names."""
    return secrets.token_urlsafe(length)[:length]


class SessionRegistry:
    """Live sessions keyed by id; callers hold on to the id as their handle.

    Every ``get`` marks a session as used. With ``idle_ttl`` set, sessions
    nobody has looked up for that many seconds are closed and dropped the
    next time a session is created, so abandoned HTTP games do not pile up.
    """

    def __init__(self, factory, idle_ttl: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self._factory = factory
        self.idle_ttl = idle_ttl
        self._clock = clock
        self._sessions: Dict[str, GameSession] = {}
        self._last_used: Dict[str, float] = {}
        self._lock = threading.Lock()

    def create(self, **kwargs) -> Tuple[str, GameSession]:
        self.prune()
        with self._lock:
            session_id = generate_session_id()
            while session_id in self._sessions:
                session_id = generate_session_id()
            session = self._factory(session_id, **kwargs)
            self._sessions[session_id] = session
            self._last_used[session_id] = self._clock()
            return session_id, session

    def get(self, session_id: str) -> Optional[GameSession]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                self._last_used[session_id] = self._clock()
            return session

    def discard(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
            self._last_used.pop(session_id, None)
        if session is None:
            return False
        session.close()
        return True

    def prune(self) -> List[str]:
        """Close and drop sessions idle for longer than ``idle_ttl``."""
        if not self.idle_ttl:
            return []
        cutoff = self._clock() - self.idle_ttl
        with self._lock:
            expired = [sid for sid, used in self._last_used.items() if used < cutoff]
            sessions = [self._sessions.pop(sid) for sid in expired]
            for sid in expired:
                del self._last_used[sid]
        for sid, session in zip(expired, sessions):
            session.close()
            logger.info(f"[session-expire] session={sid} idle_ttl={self.idle_ttl}s")
        return expired

    def __len__(self):
        return len(self._sessions)

"""In-memory registry of design sessions for the running process."""

import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

from forma.config.settings import Settings, get_settings
from forma.handlers.error_handler import SessionNotFoundError
from forma.services.gateway_service.main import ModelGateways
from forma.services.gateway_service.model_gateway import ModelGateway
from forma.services.session_service.design_session import DesignSession
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)


class SessionStore:
    """Create, look up and discard sessions by id.

    State lives only in this process; a restart forgets every session.
    Sessions idle for longer than ``session_ttl_seconds`` are dropped, and
    once ``max_sessions`` are held the least recently used one makes room
    for a new one. A session with a transition in flight is never evicted.
    """

    def __init__(
        self,
        gateway_factory: Optional[Callable[[], ModelGateway]] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.gateway_factory = gateway_factory or ModelGateways.get_gateway
        self.settings = settings or get_settings()
        self.clock = clock
        # least recently used first
        self._sessions: "OrderedDict[str, DesignSession]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}

    def create(self) -> DesignSession:
        """Register a fresh session on the form screen."""
        self._purge_expired()
        while len(self._sessions) >= self.settings.max_sessions:
            if not self._evict_oldest_idle():
                logger.warning(
                    f"Session limit {self.settings.max_sessions} reached with every session busy"
                )
                break

        session = DesignSession(gateway=self.gateway_factory(), settings=self.settings)
        self._sessions[session.session_id] = session
        self._last_seen[session.session_id] = self.clock()
        logger.info(f"Session created: {session.session_id} ({len(self._sessions)} active)")
        return session

    def get(self, session_id: str) -> DesignSession:
        """Return the session or raise SessionNotFoundError."""
        self._purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        self._touch(session_id)
        return session

    def delete(self, session_id: str) -> None:
        """Forget a session; unknown ids raise SessionNotFoundError."""
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        self._last_seen.pop(session_id, None)
        logger.info(f"Session deleted: {session_id}")

    def __len__(self) -> int:
        return len(self._sessions)

    def _touch(self, session_id: str) -> None:
        self._sessions.move_to_end(session_id)
        self._last_seen[session_id] = self.clock()

    def _drop(self, session_id: str, reason: str) -> None:
        self._sessions.pop(session_id, None)
        self._last_seen.pop(session_id, None)
        logger.info(f"Session evicted ({reason}): {session_id}")

    def _purge_expired(self) -> None:
        """Drop idle sessions whose last use is older than the TTL."""
        cutoff = self.clock() - self.settings.session_ttl_seconds
        expired = [
            sid
            for sid, session in self._sessions.items()
            if self._last_seen[sid] <= cutoff and not session.busy
        ]
        for sid in expired:
            self._drop(sid, "idle")

    def _evict_oldest_idle(self) -> bool:
        for sid, session in self._sessions.items():
            if not session.busy:
                self._drop(sid, "capacity")
                return True
        return False

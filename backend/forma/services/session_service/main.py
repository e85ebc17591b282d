"""Factory exposing the process-wide session store to request handlers."""

from functools import lru_cache

from forma.services.session_service.session_store import SessionStore


class DesignSessions:
    """Dependency provider for the session registry.

    The store is created once per process so every request sees the same sessions.
    """

    @staticmethod
    @lru_cache()
    def get_store() -> SessionStore:
        """Provide the shared SessionStore."""
        return SessionStore()

"""
In-memory registry of cooking sessions for the HTTP layer.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Optional
from uuid import uuid4

from masala_chef.config import Settings, settings as default_settings
from masala_chef.engine.recipes import RecipeCatalog, get_catalog
from masala_chef.engine.session import RecipeSession
from masala_chef.errors import SessionLimitExceededError, SessionNotFoundError
from masala_chef.models.schemas import SessionPhase

logger = logging.getLogger(__name__)


class SessionService:
    """Create, look up and discard RecipeSession instances by id."""

    def __init__(
        self,
        catalog: Optional[RecipeCatalog] = None,
        config: Optional[Settings] = None,
        clock=None,
    ):
        self.catalog = catalog or get_catalog()
        self.config = config or default_settings
        self.clock = clock
        self._sessions: Dict[str, RecipeSession] = {}
        # One lock per session serializes validate / complete_step calls from
        # the threadpool; the registry lock guards the two dicts
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def create(self, recipe_key: Optional[str] = None, start: bool = True) -> tuple:
        """
        Create and (by default) start a new session.

        Args:
            recipe_key: Registry key; defaults to settings.default_recipe
            start: Start the session clock immediately

        Returns:
            (session_id, RecipeSession)

        Raises:
            SessionLimitExceededError: If too many sessions are still in play
            RecipeNotFoundError: If the recipe key is unknown
        """
        session = RecipeSession(
            recipe_key or self.config.default_recipe,
            catalog=self.catalog,
            config=self.config,
            clock=self.clock,
        )

        with self._registry_lock:
            limit = self.config.max_active_sessions
            if limit > 0 and self.active_count() >= limit:
                raise SessionLimitExceededError(limit)
            if start:
                session.start()
            session_id = str(uuid4())
            self._sessions[session_id] = session
            self._locks[session_id] = threading.Lock()
        logger.info(f"Created session {session_id} for {session.recipe.key}")
        return session_id, session

    def get(self, session_id: str) -> RecipeSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    @contextmanager
    def locked(self, session_id: str) -> Iterator[RecipeSession]:
        """
        Look up a session and hold its lock for the duration of the block.

        Raises:
            SessionNotFoundError: If the id is unknown
        """
        with self._registry_lock:
            session = self._sessions.get(session_id)
            lock = self._locks.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        with lock:
            yield session

    def delete(self, session_id: str) -> None:
        with self._registry_lock:
            session = self._sessions.pop(session_id, None)
            self._locks.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Deleted session {session_id}")

    def count(self) -> int:
        return len(self._sessions)

    def active_count(self) -> int:
        """Sessions still being played; finished ones do not count toward the limit."""
        return sum(
            1 for session in list(self._sessions.values())
            if session.phase != SessionPhase.COMPLETE
        )


_service: Optional[SessionService] = None


def get_session_service() -> SessionService:
    """FastAPI dependency returning the process-wide registry."""
    global _service
    if _service is None:
        _service = SessionService()
    return _service

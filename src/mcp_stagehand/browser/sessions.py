"""
Session registry.

Maps a session identifier to one live engine handle. Handles are created on
first use, health-checked on every reuse and disposed explicitly. A handle
whose remote browser died underneath us is replaced transparently, so a
caller is never given a dead handle.

Ownership:
    A registry belongs to exactly one AutomationContext (one per protocol
    connection). Nothing is shared between registries.
"""

import asyncio
import contextlib
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional

from ..config import EngineConfig
from ..exceptions import SessionCreationError
from .engine import EngineHandle, create_handle, is_session_destroyed

import logging
logger = logging.getLogger(__name__)


HandleFactory = Callable[[EngineConfig], Awaitable[EngineHandle]]

REGISTRY_CLOSED_MESSAGE = "session registry is closed"


@dataclass
class Session:
    """
    One remote browser automation handle.

    Attributes:
        session_id: Identifier, unique within the owning registry
        handle: Live engine handle
        config: Configuration the handle was created with (reused on recreation)
        created_at: Creation timestamp
    """

    session_id: str
    handle: EngineHandle
    config: EngineConfig
    created_at: float = field(default_factory=time.time)

    @property
    def page(self):
        return self.handle.page

    @property
    def browser(self):
        return self.handle.browser

    async def is_healthy(self) -> bool:
        """Probe the handle. Health is never cached."""
        try:
            await self.handle.probe()
            return True
        except Exception:
            return False


class _IdLock:
    """Per-identifier lock plus the number of callers using it."""

    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = asyncio.Lock()
        self.users = 0


class SessionRegistry:
    """Lazily creates, health-checks and disposes sessions by identifier."""

    def __init__(self, config: EngineConfig, handle_factory: Optional[HandleFactory] = None):
        self._config = config
        self._handle_factory = handle_factory or create_handle
        self._sessions: Dict[str, Session] = {}
        self._disposing: Dict[str, Session] = {}
        self._locks: Dict[str, _IdLock] = {}
        self._closed = False

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def undisposed_ids(self) -> List[str]:
        """Sessions not yet fully closed: live ones plus those mid-disposal."""
        return [*self._sessions, *(sid for sid in self._disposing if sid not in self._sessions)]

    @property
    def closed(self) -> bool:
        return self._closed

    @contextlib.asynccontextmanager
    async def _locked(self, session_id: str):
        """Serialize work on one identifier. The lock is dropped once no session or caller needs it."""
        entry = self._locks.get(session_id)
        if entry is None:
            entry = self._locks[session_id] = _IdLock()
        entry.users += 1
        try:
            async with entry.lock:
                yield
        finally:
            entry.users -= 1
            if not entry.users and session_id not in self._sessions and self._locks.get(session_id) is entry:
                del self._locks[session_id]

    async def acquire(self, session_id: str, config: Optional[EngineConfig] = None) -> Session:
        """
        Return a live, health-checked session for session_id, creating it if absent.

        If the cached handle fails its probe with a destroyed-session error, it
        is discarded and a replacement is created under the same identifier.
        Any other probe failure is re-raised.

        Raises:
            SessionCreationError: the engine could not create the session, or
                the registry has been closed
        """
        if self._closed:
            raise SessionCreationError(session_id, RuntimeError(REGISTRY_CLOSED_MESSAGE))

        async with self._locked(session_id):
            session = self._sessions.get(session_id)
            if session is None:
                return await self._create(session_id, config or self._config)

            try:
                await session.handle.probe()
                return session
            except Exception as e:
                if not is_session_destroyed(e):
                    raise
                logger.info("Browser session %s expired, reinitializing: %s", session_id, e)

            self._sessions.pop(session_id, None)
            await self._dispose(session)
            return await self._create(session_id, config or session.config)

    def get_active_read_only(self, session_id: str) -> Optional[Session]:
        """Return the session if it exists. Never creates one."""
        return self._sessions.get(session_id)

    async def release(self, session_id: str) -> bool:
        """
        Close and forget the session. Idempotent.

        Waits for a creation or heal of the same identifier to finish, so the
        session it produces is the one released. Returns True if a session
        was disposed. Disposal errors are logged and swallowed so sibling
        sessions can still be released.
        """
        async with self._locked(session_id):
            session = self._sessions.pop(session_id, None)
            if session is None:
                return False
            self._disposing[session_id] = session
            try:
                await self._dispose(session)
            finally:
                if self._disposing.get(session_id) is session:
                    del self._disposing[session_id]
            return True

    async def release_all(self) -> None:
        """
        Close the registry and release every session concurrently.

        One failure does not stop the others. Once closed, acquire() refuses
        new sessions and a creation still in flight disposes its handle as
        soon as the engine returns it.
        """
        self._closed = True
        session_ids = self.session_ids()
        if not session_ids:
            return
        await asyncio.gather(*(self.release(sid) for sid in session_ids))

    async def _create(self, session_id: str, config: EngineConfig) -> Session:
        logger.info("Creating browser session %s (engine=%s, env=%s)", session_id, config.engine, config.env)
        try:
            handle = await self._handle_factory(config)
        except Exception as e:
            logger.error("Failed to initialize browser session %s: %s", session_id, e)
            raise SessionCreationError(session_id, e) from e
        session = Session(session_id=session_id, handle=handle, config=config)
        if self._closed:
            logger.info("Registry closed while creating browser session %s, disposing it", session_id)
            await self._dispose(session)
            raise SessionCreationError(session_id, RuntimeError(REGISTRY_CLOSED_MESSAGE))
        self._sessions[session_id] = session
        return session

    async def _dispose(self, session: Session) -> None:
        try:
            await session.handle.close()
            logger.info("Browser session %s closed", session.session_id)
        except Exception as e:
            logger.error("Error closing browser session %s: %s", session.session_id, e)


__all__ = [
    "REGISTRY_CLOSED_MESSAGE",
    "HandleFactory",
    "Session",
    "SessionRegistry",
]

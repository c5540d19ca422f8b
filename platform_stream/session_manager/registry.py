"""Single source of truth mapping each user to their live session."""

from __future__ import annotations

import asyncio
import logging
import sys
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator, Optional

from ..models.platform import IdentityDescriptor, PlatformDescriptor
from .session import Session

if TYPE_CHECKING:
    from .browser import SessionLauncher
    from .events import EventChannel

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class SessionRegistry:
    """Holds at most one live session per user identity."""

    def __init__(self, launcher: SessionLauncher):
        self._launcher = launcher
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    async def start_or_replace(
        self,
        user_id: str,
        platform: PlatformDescriptor,
        identity: IdentityDescriptor,
        channel: EventChannel,
    ) -> Session:
        """Tear down any session for ``user_id``, then launch and register a new one.

        The previous browser is fully closed before the new one is
        allocated. A launch failure leaves the user with no session.
        """
        async with self._user_lock(user_id):
            await self._discard(user_id)
            session = await self._launcher.launch(user_id, platform, identity, channel)
            self._sessions[user_id] = session
            logger.info(f"[REGISTRY] Registered {session.session_id} ({self.count()} active)")
            return session

    def get(self, user_id: str) -> Optional[Session]:
        return self._sessions.get(user_id)

    def is_current(self, session: Session) -> bool:
        """True if ``session`` is still the registered, open session for its user."""
        return self._sessions.get(session.user_id) is session and not session.is_closed

    async def close(self, user_id: str) -> bool:
        """Close and unregister the user's session. Returns False if there was none.

        Waits for an in-flight launch for the same user to finish first.
        """
        async with self._user_lock(user_id):
            return await self._discard(user_id)

    @asynccontextmanager
    async def _user_lock(self, user_id: str) -> AsyncIterator[None]:
        """Per-user lock, dropped once no holder or waiter remains."""
        lock = self._locks.setdefault(user_id, asyncio.Lock())
        self._lock_users[user_id] = self._lock_users.get(user_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[user_id] -= 1
            if not self._lock_users[user_id]:
                del self._lock_users[user_id]
                del self._locks[user_id]

    async def _discard(self, user_id: str) -> bool:
        session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        await session.close()
        logger.info(f"[REGISTRY] Removed session for {user_id} ({self.count()} active)")
        return True

    async def close_all(self):
        """Close every session and empty the registry. Used at shutdown."""
        sessions = list(self._sessions.values())
        self._sessions.clear()
        if not sessions:
            return
        logger.info(f"[REGISTRY] Closing {len(sessions)} session(s)...")
        results = await asyncio.gather(
            *(session.close() for session in sessions), return_exceptions=True
        )
        for session, result in zip(sessions, results):
            if isinstance(result, Exception):
                logger.warning(f"[REGISTRY] Error closing {session.session_id}: {result}")

    def count(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

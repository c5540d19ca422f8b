"""Session lifecycle orchestration for the streaming engine.

``StreamingEngine`` is the error boundary for every session-level command:
it decides which failures become outbound error events, which degrade to a
manual-control stream, and what gets reported to the audit sink.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from ..config import LOGIN_SETTLE_DELAY_SECONDS
from ..constants import (
    ACCESS_FAILED,
    ACCESS_SUCCESS,
    EVENT_LOGIN_STATUS,
    MESSAGE_LOGIN_SUCCESS,
    MESSAGE_MANUAL_FALLBACK,
    MESSAGE_MANUAL_LOGIN,
    MESSAGE_NAVIGATION_FAILED,
    STATUS_ERROR,
    STATUS_LOGGING_IN,
    STATUS_SUCCESS,
)
from ..database.repository import AccessLogRepository
from ..models.access_log import AccessEvent
from ..models.interaction import Interaction
from ..models.platform import IdentityDescriptor, PlatformDescriptor
from ..models.session import SessionInfo
from .browser import SessionLauncher
from .errors import NavigationTimeout
from .events import EventChannel
from .login import LoginOutcome, LoginStrategyChain
from .navigation import NavigationController
from .registry import SessionRegistry
from .relay import InteractionRelay
from .session import Session
from .streamer import ScreenshotStreamer

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class StreamingEngine:
    """Starts, drives and stops per-user proxy browser sessions."""

    def __init__(
        self,
        registry: SessionRegistry,
        navigator: Optional[NavigationController] = None,
        login_chain: Optional[LoginStrategyChain] = None,
        streamer: Optional[ScreenshotStreamer] = None,
        relay: Optional[InteractionRelay] = None,
        audit: Optional[AccessLogRepository] = None,
        login_settle_delay: float = LOGIN_SETTLE_DELAY_SECONDS,
    ):
        self.registry = registry
        self.navigator = navigator or NavigationController()
        self.login_chain = login_chain or LoginStrategyChain()
        self.streamer = streamer or ScreenshotStreamer(registry)
        self.relay = relay or InteractionRelay(registry)
        self.audit = audit
        self._login_settle_delay = login_settle_delay

    @classmethod
    def create(
        cls,
        launcher: Optional[SessionLauncher] = None,
        audit: Optional[AccessLogRepository] = None,
    ) -> StreamingEngine:
        """Build an engine with the default components around one registry."""
        registry = SessionRegistry(launcher or SessionLauncher())
        return cls(registry, audit=audit)

    async def start_session(
        self,
        user_id: str,
        platform: PlatformDescriptor,
        identity: IdentityDescriptor,
        channel: EventChannel,
        auto_login: bool = True,
    ) -> Session:
        """Launch, navigate, optionally log in, then start streaming.

        Any existing session for ``user_id`` is closed first. Login
        failures degrade to manual control; the capture loop always starts
        once the page has loaded.

        Raises:
            LaunchFailure: the browser could not be allocated.
            NavigationTimeout: the platform did not load. The session is
                closed and no frames are ever streamed for it. Not raised
                when the session was stopped or replaced while loading.
        """
        session = await self.registry.start_or_replace(user_id, platform, identity, channel)

        try:
            await self.navigator.navigate(
                session.page, platform.url, channel, platform.display_name
            )
        except NavigationTimeout:
            if not self.registry.is_current(session):
                # Stopped or replaced while loading; the page error is expected.
                logger.info(f"Session {session.session_id} was stopped during navigation")
                return session
            await channel.emit(EVENT_LOGIN_STATUS, {
                "status": STATUS_ERROR,
                "message": MESSAGE_NAVIGATION_FAILED,
            })
            await self._report_access(session, ACCESS_FAILED, "navigation failed")
            await self._close_if_current(session)
            raise

        outcome = None
        if auto_login:
            outcome = await self._auto_login(session, channel)

        if not self.registry.is_current(session):
            logger.info(f"Session {session.session_id} was stopped during startup")
            await self._report_access(
                session, ACCESS_FAILED, "via streaming (stopped during startup)"
            )
            return session

        if outcome is None:
            message = MESSAGE_MANUAL_LOGIN
            await self._report_access(session, ACCESS_SUCCESS, "via streaming (manual login)")
        else:
            message = MESSAGE_LOGIN_SUCCESS if outcome.success else MESSAGE_MANUAL_FALLBACK
            await self._report_access(
                session,
                ACCESS_SUCCESS if outcome.success else ACCESS_FAILED,
                "via streaming",
            )

        await channel.emit(EVENT_LOGIN_STATUS, {"status": STATUS_SUCCESS, "message": message})
        self.streamer.start(session, channel)
        return session

    async def _auto_login(self, session: Session, channel: EventChannel) -> LoginOutcome:
        await channel.emit(EVENT_LOGIN_STATUS, {
            "status": STATUS_LOGGING_IN,
            "message": "Attempting automatic login...",
        })
        await asyncio.sleep(self._login_settle_delay)

        if not self.registry.is_current(session):
            return LoginOutcome(False, "", "session closed before login")

        try:
            outcome = await self.login_chain.attempt_login(session.page, session.platform)
        except Exception as e:
            # The session may have been torn down under the chain.
            logger.warning(f"[LOGIN] Login chain aborted for {session.user_id}: {e}")
            outcome = LoginOutcome(False, "", str(e))

        session.is_logged_in = outcome.success
        if outcome.success and session.is_live:
            try:
                session.cookies = await session.page.context.cookies()
            except Exception as e:
                logger.debug(f"[LOGIN] Could not capture cookies: {e}")

        logger.info(
            f"[LOGIN] {session.user_id} on {session.platform.display_name}: "
            f"success={outcome.success} strategy={outcome.strategy or '-'} ({outcome.reason})"
        )
        return outcome

    async def _close_if_current(self, session: Session):
        if self.registry.is_current(session):
            await self.registry.close(session.user_id)
        else:
            await session.close()

    async def _report_access(self, session: Session, status: str, detail: str):
        """Send an access event to the audit sink. Never raises."""
        if self.audit is None or not session.identity.id:
            return
        event = AccessEvent(
            actor_id=session.identity.id,
            actor_name=session.identity.full_name,
            platform_id=session.platform.id,
            platform_name=session.platform.platform_name,
            description=f'Accessed platform "{session.platform.display_name}" {detail}',
            status=status,
            session_id=session.session_id,
        )
        try:
            await self.audit.record(event)
        except Exception as e:
            logger.warning(f"[AUDIT] Could not record access event: {e}")

    async def stop_session(self, user_id: str) -> bool:
        """Tear down the user's session. No-op if there is none."""
        return await self.registry.close(user_id)

    async def interact(self, user_id: str, interaction: Interaction):
        await self.relay.apply(user_id, interaction)

    def get_session_info(self, user_id: str) -> Optional[SessionInfo]:
        session = self.registry.get(user_id)
        return session.info() if session is not None else None

    def active_session_count(self) -> int:
        return self.registry.count()

    async def shutdown(self):
        """Close every session. Individual close failures are logged, not raised."""
        await self.registry.close_all()

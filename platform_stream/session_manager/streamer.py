"""Periodic screenshot capture bound to a session's lifetime."""

from __future__ import annotations

import asyncio
import base64
import logging
import sys
import time

from ..config import CAPTURE_INTERVAL_SECONDS, SCREENSHOT_QUALITY
from ..constants import EVENT_SCREENSHOT
from .errors import CaptureFailure
from .events import EventChannel
from .registry import SessionRegistry
from .session import Session

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class ScreenshotStreamer:
    """Captures JPEG frames on a fixed interval and emits them to the user.

    The loop runs as a task owned by the session, so closing the session
    cancels it. Each tick also re-checks that the session is still the
    registered one and that its page is open.
    """

    def __init__(
        self,
        registry: SessionRegistry,
        interval: float = CAPTURE_INTERVAL_SECONDS,
        quality: int = SCREENSHOT_QUALITY,
    ):
        self._registry = registry
        self._interval = interval
        self._quality = quality

    def start(self, session: Session, channel: EventChannel) -> asyncio.Task:
        task = asyncio.create_task(
            self._run(session, channel), name=f"capture-{session.user_id}"
        )
        session.attach_capture(task)
        logger.info(f"[CAPTURE] Streaming started for {session.user_id}")
        return task

    async def capture(self, session: Session) -> str:
        """Capture one frame as a base64 JPEG data URI.

        Raises:
            CaptureFailure: the page is gone or the screenshot failed.
        """
        page = session.page
        if page is None:
            raise CaptureFailure("Session has no page")
        try:
            raw = await page.screenshot(type="jpeg", quality=self._quality)
        except Exception as e:
            raise CaptureFailure(f"Screenshot failed: {e}") from e
        return f"data:image/jpeg;base64,{base64.b64encode(raw).decode('ascii')}"

    async def _run(self, session: Session, channel: EventChannel):
        frames = 0
        while True:
            await asyncio.sleep(self._interval)

            if not self._registry.is_current(session) or not session.is_live:
                logger.info(f"[CAPTURE] Session for {session.user_id} ended, stopping")
                break

            try:
                image = await self.capture(session)
            except CaptureFailure as e:
                logger.info(f"[CAPTURE] {e}; stopping stream for {session.user_id}")
                break

            # The session may have been torn down while the screenshot was in flight.
            if not self._registry.is_current(session):
                break

            await channel.emit(EVENT_SCREENSHOT, {
                "image": image,
                "timestamp": int(time.time() * 1000),
            })
            frames += 1

        logger.debug(f"[CAPTURE] {frames} frame(s) sent for {session.user_id}")

"""The live automation context owned by one operator."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import datetime, timezone
from typing import Optional

from playwright.async_api import Browser, Page

from ..models.platform import IdentityDescriptor, PlatformDescriptor
from ..models.session import SessionInfo

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class Session:
    """Browser, page and metadata bound to a single user identity.

    The session exclusively owns its browser, page and capture task.
    ``close()`` cancels the capture task before releasing the browser and
    is idempotent.
    """

    def __init__(
        self,
        user_id: str,
        browser: Browser,
        page: Page,
        platform: PlatformDescriptor,
        identity: IdentityDescriptor,
    ):
        self.user_id = user_id
        self.platform = platform
        self.identity = identity
        self.created_at = datetime.now(timezone.utc)
        self.session_id = f"stream_{user_id}_{int(self.created_at.timestamp() * 1000)}"
        self.is_logged_in = False
        self.cookies: list[dict] = []
        self._browser: Optional[Browser] = browser
        self._page: Optional[Page] = page
        self._capture_task: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def page(self) -> Optional[Page]:
        return self._page

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def is_live(self) -> bool:
        """True while the page handle is usable."""
        if self._closed or self._page is None:
            return False
        try:
            return not self._page.is_closed()
        except Exception:
            return False

    @property
    def is_capturing(self) -> bool:
        return self._capture_task is not None and not self._capture_task.done()

    def attach_capture(self, task: asyncio.Task):
        """Bind a capture task to this session's lifetime."""
        if self._closed:
            task.cancel()
            return
        if self.is_capturing:
            self._capture_task.cancel()
        self._capture_task = task

    async def close(self):
        """Cancel capture, close the browser and drop every handle."""
        if self._closed:
            return
        self._closed = True

        task, self._capture_task = self._capture_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.debug(f"Capture task for {self.user_id} ended with {e!r}")

        browser, self._browser = self._browser, None
        self._page = None
        if browser is not None:
            try:
                await browser.close()
            except Exception as e:
                # The browser process may already be gone.
                logger.warning(f"Error closing browser for {self.user_id}: {e}")

        logger.info(f"Session {self.session_id} closed.")

    def info(self) -> SessionInfo:
        current_url = None
        if self.is_live:
            current_url = self._page.url
        return SessionInfo(
            user_id=self.user_id,
            platform=self.platform.display_name,
            employee=self.identity.full_name,
            start_time=self.created_at.isoformat(),
            is_logged_in=self.is_logged_in,
            cookie_count=len(self.cookies),
            session_id=self.session_id,
            current_url=current_url,
        )

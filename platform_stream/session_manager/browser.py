"""Playwright browser launching: one isolated Chromium per session."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..config import (
    BROWSER_HEADLESS,
    BROWSER_USER_AGENT,
    CHROMIUM_ARGS,
    NAVIGATION_TIMEOUT_MS,
    VIEWPORT_HEIGHT,
    VIEWPORT_WIDTH,
)
from ..models.platform import IdentityDescriptor, PlatformDescriptor
from .errors import LaunchFailure
from .events import EventBridge, EventChannel
from .session import Session

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class SessionLauncher:
    """Allocates a browser and page for a new session.

    The Playwright driver is started lazily and shared; every session gets
    its own browser process so closing one never touches another.
    """

    def __init__(
        self,
        bridge: Optional[EventBridge] = None,
        headless: Optional[bool] = None,
        playwright: Optional[Playwright] = None,
    ):
        self._bridge = bridge or EventBridge()
        self._headless = BROWSER_HEADLESS if headless is None else headless
        self._playwright = playwright
        self._owns_playwright = playwright is None
        self._driver_lock = asyncio.Lock()

    async def _driver(self) -> Playwright:
        async with self._driver_lock:
            if self._playwright is None:
                logger.info("[LAUNCH] Starting Playwright driver...")
                self._playwright = await async_playwright().start()
        return self._playwright

    async def launch(
        self,
        user_id: str,
        platform: PlatformDescriptor,
        identity: IdentityDescriptor,
        channel: EventChannel,
    ) -> Session:
        """Launch Chromium, open one page and attach the event bridge.

        Raises:
            LaunchFailure: the browser or page could not be allocated.
        """
        browser: Optional[Browser] = None
        try:
            driver = await self._driver()
            logger.info(f"[LAUNCH] Launching Chromium for {user_id} (headless={self._headless})...")
            browser = await driver.chromium.launch(headless=self._headless, args=CHROMIUM_ARGS)
            context = await browser.new_context(
                viewport={"width": VIEWPORT_WIDTH, "height": VIEWPORT_HEIGHT},
                user_agent=BROWSER_USER_AGENT,
            )
            page = await context.new_page()
            page.set_default_timeout(NAVIGATION_TIMEOUT_MS)
        except Exception as e:
            logger.error(f"[LAUNCH] Failed to launch browser for {user_id}: {e}")
            if browser is not None:
                try:
                    await browser.close()
                except Exception as close_error:
                    logger.debug(f"[LAUNCH] Cleanup after failed launch: {close_error}")
            raise LaunchFailure(f"Failed to launch browser: {e}") from e

        self._bridge.attach(page, channel)
        session = Session(user_id, browser, page, platform, identity)
        logger.info(f"[LAUNCH] Browser ready for {user_id} ({session.session_id})")
        return session

    async def stop(self):
        """Stop the shared Playwright driver if this launcher started it."""
        if self._playwright is not None and self._owns_playwright:
            try:
                await self._playwright.stop()
            except Exception as e:
                logger.warning(f"Error stopping Playwright: {e}")
        self._playwright = None
        logger.info("[LAUNCH] Playwright driver stopped.")

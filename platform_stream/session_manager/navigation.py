"""Loading the target platform into a session's page."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

from playwright.async_api import Page

from ..config import NAVIGATION_TIMEOUT_MS, SETTLE_DELAY_SECONDS
from ..constants import EVENT_LOGIN_STATUS, STATUS_NAVIGATING
from .errors import NavigationTimeout
from .events import EventChannel

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when the URL carries no scheme."""
    url = url.strip()
    if url.startswith("http://") or url.startswith("https://"):
        return url
    if "://" in url:
        return url
    return f"https://{url}"


class NavigationController:
    """Navigates with a hard timeout, then waits for client-side rendering."""

    def __init__(
        self,
        timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        settle_delay: float = SETTLE_DELAY_SECONDS,
    ):
        self._timeout_ms = timeout_ms
        self._settle_delay = settle_delay

    async def navigate(
        self,
        page: Page,
        url: str,
        channel: Optional[EventChannel] = None,
        platform_name: str = "",
    ):
        """Load ``url`` and wait for the network to go idle.

        Raises:
            NavigationTimeout: the page did not settle within the timeout,
                or the target was unreachable.
        """
        target = normalize_url(url)
        if channel is not None:
            await channel.emit(EVENT_LOGIN_STATUS, {
                "status": STATUS_NAVIGATING,
                "message": f"Navigating to {platform_name or target}...",
            })

        logger.info(f"[NAV] Navigating to {target}")
        try:
            await page.goto(target, wait_until="networkidle", timeout=self._timeout_ms)
        except Exception as e:
            logger.warning(f"[NAV] Navigation to {target} failed: {e}")
            raise NavigationTimeout(f"Could not load {target}: {e}") from e

        await asyncio.sleep(self._settle_delay)
        logger.info(f"[NAV] Landed on {page.url}")

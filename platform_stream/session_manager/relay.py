"""Maps remote input events onto actions against the live page."""

from __future__ import annotations

import asyncio
import logging
import sys

from ..config import INTERACTION_SETTLE_SECONDS, TYPE_DELAY_MS
from ..models.interaction import Interaction
from .errors import InteractionFailed, NoActiveSession
from .registry import SessionRegistry

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class InteractionRelay:
    """Applies click, type, keypress and scroll events to a user's page."""

    def __init__(
        self,
        registry: SessionRegistry,
        settle_delay: float = INTERACTION_SETTLE_SECONDS,
        type_delay_ms: int = TYPE_DELAY_MS,
    ):
        self._registry = registry
        self._settle_delay = settle_delay
        self._type_delay_ms = type_delay_ms

    async def apply(self, user_id: str, interaction: Interaction):
        """Apply ``interaction`` then pause briefly so the page can react.

        Unknown interaction kinds are ignored.

        Raises:
            NoActiveSession: the user has no live session.
            InteractionFailed: the page rejected the action.
        """
        session = self._registry.get(user_id)
        if session is None or not session.is_live:
            raise NoActiveSession(user_id)

        page = session.page
        kind = interaction.type
        try:
            if kind == "click":
                if interaction.x is None or interaction.y is None:
                    raise InteractionFailed("click requires x and y")
                await page.mouse.click(interaction.x, interaction.y)
            elif kind == "type":
                await page.keyboard.type(interaction.text, delay=self._type_delay_ms)
            elif kind == "keypress":
                await page.keyboard.press(interaction.key)
            elif kind == "scroll":
                await page.mouse.wheel(0, interaction.delta_y)
            else:
                logger.debug(f"[RELAY] Ignoring unknown interaction {kind!r}")
                return
        except InteractionFailed:
            raise
        except Exception as e:
            logger.warning(f"[RELAY] {kind} failed for {user_id}: {e}")
            raise InteractionFailed(f"{kind} failed: {e}") from e

        await asyncio.sleep(self._settle_delay)

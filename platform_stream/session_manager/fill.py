"""Resilient text entry into login form fields."""

from __future__ import annotations

import asyncio
import logging
import sys

from playwright.async_api import ElementHandle, Page

from ..config import RETYPE_DELAY_SECONDS, TYPE_DELAY_MS

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

CLEAR_FIELD_JS = """
(el) => {
    el.value = '';
    el.focus();
    el.dispatchEvent(new Event('input', { bubbles: true }));
    el.dispatchEvent(new Event('change', { bubbles: true }));
}
"""


class FieldFiller:
    """Types a value into a field, verifying and retrying once."""

    def __init__(
        self,
        type_delay_ms: int = TYPE_DELAY_MS,
        retype_delay: float = RETYPE_DELAY_SECONDS,
    ):
        self._type_delay_ms = type_delay_ms
        self._retype_delay = retype_delay

    async def fill(self, page: Page, field: ElementHandle, value: str) -> bool:
        """Enter ``value`` into ``field``. Never raises.

        Primary path: focus, select the existing content and type over it.
        If the read-back value differs, clear the field through the DOM and
        type one character at a time with a longer pause.

        Returns:
            True if the field holds ``value`` afterwards.
        """
        if field is None or not value:
            return False

        try:
            await field.focus()
            await field.select_text()
            await field.type(value, delay=self._type_delay_ms)

            if await field.input_value() == value:
                return True

            logger.debug("[FILL] Read-back mismatch, retyping character by character")
            await field.evaluate(CLEAR_FIELD_JS)
            await asyncio.sleep(self._retype_delay)
            for char in value:
                await page.keyboard.type(char)
                await asyncio.sleep(self._retype_delay)

            return await field.input_value() == value
        except Exception as e:
            logger.debug(f"[FILL] Field fill failed: {e}")
            return False

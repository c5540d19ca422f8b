"""Outbound event channels and the page-signal bridge.

A ``ChannelHub`` keeps the WebSockets subscribed to each user; the
``UserChannel`` it hands out fans an event out to all of them. The
``EventBridge`` wires page-level console, error and dialog signals onto a
channel before the page navigates anywhere.
"""

from __future__ import annotations

import logging
import sys
from collections import defaultdict
from typing import Any

from aiohttp import web
from playwright.async_api import ConsoleMessage, Dialog, Error as PlaywrightError, Page

from ..constants import EVENT_PAGE_DIALOG, EVENT_PAGE_ERROR

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class EventChannel:
    """Outbound event sink bound to one user."""

    user_id: str = ""

    async def emit(self, event: str, data: Any = None):
        raise NotImplementedError


class UserChannel(EventChannel):
    """Delivers events to every WebSocket the hub holds for ``user_id``."""

    def __init__(self, hub: ChannelHub, user_id: str):
        self._hub = hub
        self.user_id = user_id

    async def emit(self, event: str, data: Any = None):
        await self._hub.broadcast(self.user_id, event, data)


class ChannelHub:
    """Tracks WebSocket subscribers per user."""

    def __init__(self):
        self._sockets: defaultdict[str, set[web.WebSocketResponse]] = defaultdict(set)

    def channel(self, user_id: str) -> UserChannel:
        return UserChannel(self, user_id)

    def subscribe(self, user_id: str, ws: web.WebSocketResponse):
        self._sockets[user_id].add(ws)

    def unsubscribe(self, user_id: str, ws: web.WebSocketResponse):
        sockets = self._sockets.get(user_id)
        if sockets is None:
            return
        sockets.discard(ws)
        if not sockets:
            del self._sockets[user_id]

    def subscriber_count(self, user_id: str) -> int:
        return len(self._sockets.get(user_id, ()))

    def all_sockets(self) -> list[web.WebSocketResponse]:
        return [ws for sockets in self._sockets.values() for ws in sockets]

    async def broadcast(self, user_id: str, event: str, data: Any = None):
        """Send one event frame to each open socket of ``user_id``.

        Sockets that fail to send are dropped; delivery to the others
        continues.
        """
        frame = {"event": event, "data": data}
        for ws in list(self._sockets.get(user_id, ())):
            if ws.closed:
                self.unsubscribe(user_id, ws)
                continue
            try:
                await ws.send_json(frame)
            except (ConnectionResetError, RuntimeError) as e:
                logger.debug(f"[WS] Dropping subscriber of {user_id}: {e}")
                self.unsubscribe(user_id, ws)


class EventBridge:
    """Forwards page errors and dialogs to the user's channel."""

    def attach(self, page: Page, channel: EventChannel):
        user_id = channel.user_id

        def on_console(message: ConsoleMessage):
            logger.debug(f"[BRIDGE] console.{message.type} ({user_id}): {message.text}")

        async def on_page_error(error: PlaywrightError):
            logger.info(f"[BRIDGE] Page error ({user_id}): {error.message}")
            await channel.emit(EVENT_PAGE_ERROR, {"message": error.message})

        async def on_dialog(dialog: Dialog):
            logger.info(f"[BRIDGE] {dialog.type} dialog ({user_id}): {dialog.message}")
            try:
                await channel.emit(EVENT_PAGE_DIALOG, {"type": dialog.type, "message": dialog.message})
            finally:
                try:
                    await dialog.accept()
                except PlaywrightError as e:
                    # The page may have closed with the dialog still open.
                    logger.debug(f"[BRIDGE] Could not accept dialog: {e}")

        page.on("console", on_console)
        page.on("pageerror", on_page_error)
        page.on("dialog", on_dialog)

"""Streaming HTTP/WebSocket service.

Bridges remote operators to their proxy browser sessions.

Endpoints:
    GET /ws/{user_id}        - WebSocket command/event channel for one user
    GET /health              - Liveness and active session count
    GET /sessions/{user_id}  - Snapshot of the user's session and recent access

WebSocket frames are JSON objects ``{"event": <name>, "data": {...}}``.
Inbound commands: start-session, user-interaction, stop-session.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

import aiosqlite
from aiohttp import WSCloseCode, WSMsgType, web
from pydantic import ValidationError

from ..config import DB_PATH, STREAM_HOST, STREAM_PORT, ensure_dirs
from ..constants import (
    COMMAND_START_SESSION,
    COMMAND_STOP_SESSION,
    COMMAND_USER_INTERACTION,
    EVENT_INTERACTION_ERROR,
    EVENT_STREAM_ERROR,
    EVENT_STREAM_STARTED,
    EVENT_STREAM_STOPPED,
)
from ..database.models import initialize_db
from ..database.repository import AccessLogRepository
from ..models.interaction import Interaction
from ..models.platform import StartSessionRequest
from .browser import SessionLauncher
from .engine import StreamingEngine
from .errors import LaunchFailure, NavigationTimeout, StreamError
from .events import ChannelHub

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class StreamService:
    """Owns the engine, the channel hub and the audit database."""

    def __init__(self, engine: StreamingEngine, hub: ChannelHub | None = None):
        self.engine = engine
        self.hub = hub or ChannelHub()
        self.db: aiosqlite.Connection | None = None
        self.launcher: SessionLauncher | None = None
        self._tasks: set[asyncio.Task] = set()

    @classmethod
    async def setup(cls) -> StreamService:
        """Open the audit database and build the default engine."""
        ensure_dirs()
        db = await aiosqlite.connect(str(DB_PATH))
        await initialize_db(db)
        launcher = SessionLauncher()
        service = cls(StreamingEngine.create(launcher, audit=AccessLogRepository(db)))
        service.db = db
        service.launcher = launcher
        return service

    def spawn(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def cleanup(self):
        """Close every session before releasing the driver and database."""
        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        await self.engine.shutdown()
        if self.launcher is not None:
            await self.launcher.stop()
        if self.db is not None:
            await self.db.close()

    # ── Commands ────────────────────────────────────────────────────────────

    async def start_session(self, user_id: str, ws: web.WebSocketResponse, data: dict):
        try:
            request = StartSessionRequest.model_validate(data)
        except ValidationError as e:
            await _reply(ws, EVENT_STREAM_ERROR, {"success": False, "message": f"Invalid request: {e}"})
            return

        channel = self.hub.channel(user_id)
        try:
            session = await self.engine.start_session(
                user_id, request.platform, request.identity, channel, request.auto_login
            )
        except LaunchFailure as e:
            logger.error(f"[WS] Launch failed for {user_id}: {e}")
            await _reply(ws, EVENT_STREAM_ERROR, {
                "success": False,
                "message": "Failed to start platform streaming",
            })
            return
        except NavigationTimeout:
            await _reply(ws, EVENT_STREAM_ERROR, {
                "success": False,
                "message": "Failed to load platform",
            })
            return
        except Exception as e:
            logger.error(f"[WS] Session start failed for {user_id}: {e}", exc_info=True)
            await _reply(ws, EVENT_STREAM_ERROR, {
                "success": False,
                "message": "Failed to start platform streaming",
            })
            return

        if not self.engine.registry.is_current(session):
            # Stopped or replaced before it came up; that command already replied.
            return

        message = "Platform streaming started successfully"
        if not request.auto_login:
            message = "Platform streaming started (manual login required)"
        await _reply(ws, EVENT_STREAM_STARTED, {"success": True, "message": message})

    async def user_interaction(self, user_id: str, ws: web.WebSocketResponse, data: dict):
        try:
            interaction = Interaction.model_validate(data.get("interaction") or {})
        except ValidationError as e:
            await _reply(ws, EVENT_INTERACTION_ERROR, {"message": f"Invalid interaction: {e}"})
            return

        try:
            await self.engine.interact(user_id, interaction)
        except StreamError as e:
            logger.info(f"[WS] Interaction rejected for {user_id}: {e}")
            await _reply(ws, EVENT_INTERACTION_ERROR, {"message": "Failed to process interaction"})

    async def stop_session(self, user_id: str, ws: web.WebSocketResponse):
        try:
            await self.engine.stop_session(user_id)
        except Exception as e:
            logger.error(f"[WS] Stop failed for {user_id}: {e}", exc_info=True)
            await _reply(ws, EVENT_STREAM_ERROR, {
                "success": False,
                "message": "Failed to stop platform streaming",
            })
            return
        await _reply(ws, EVENT_STREAM_STOPPED, {"success": True, "message": "Platform streaming stopped"})


async def _reply(ws: web.WebSocketResponse, event: str, data: Any):
    if ws.closed:
        return
    try:
        await ws.send_json({"event": event, "data": data})
    except (ConnectionResetError, RuntimeError) as e:
        logger.debug(f"[WS] Could not reply {event}: {e}")


# ── HTTP Handlers ────────────────────────────────────────────────────────────


async def handle_ws(request: web.Request) -> web.WebSocketResponse:
    service: StreamService = request.app["service"]
    user_id = request.match_info["user_id"]

    ws = web.WebSocketResponse(heartbeat=30)
    await ws.prepare(request)
    service.hub.subscribe(user_id, ws)
    logger.info(f"[WS] {user_id} connected ({service.hub.subscriber_count(user_id)} socket(s))")

    try:
        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                logger.warning(f"[WS] Connection error for {user_id}: {ws.exception()}")
                break
            if msg.type != WSMsgType.TEXT:
                continue

            try:
                frame = json.loads(msg.data)
                command = frame["event"]
                data = frame.get("data") or {}
            except (json.JSONDecodeError, KeyError, TypeError, AttributeError):
                logger.warning(f"[WS] Malformed frame from {user_id}: {msg.data[:100]}")
                continue

            if command == COMMAND_START_SESSION:
                # Runs in the background so interactions and stop requests keep flowing.
                service.spawn(service.start_session(user_id, ws, data))
            elif command == COMMAND_USER_INTERACTION:
                await service.user_interaction(user_id, ws, data)
            elif command == COMMAND_STOP_SESSION:
                await service.stop_session(user_id, ws)
            else:
                logger.warning(f"[WS] Unknown command {command!r} from {user_id}")
    finally:
        service.hub.unsubscribe(user_id, ws)
        logger.info(f"[WS] {user_id} disconnected")

    return ws


async def handle_health(request: web.Request) -> web.Response:
    service: StreamService = request.app["service"]
    repo = service.engine.audit
    access_events = await repo.get_event_count() if repo else 0
    return web.json_response({
        "success": True,
        "message": "Server is running!",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "active_sessions": service.engine.active_session_count(),
        "access_events": access_events,
    })


async def handle_session_info(request: web.Request) -> web.Response:
    service: StreamService = request.app["service"]
    user_id = request.match_info["user_id"]

    session = service.engine.registry.get(user_id)
    if session is None:
        return web.json_response({"error": f"No active session for {user_id}"}, status=404)

    # Access events are keyed by the identity, not the channel user id.
    actor_id = session.identity.id
    repo = service.engine.audit
    recent = await repo.list_for_actor(actor_id, limit=10) if repo and actor_id else []
    return web.json_response({
        "session": session.info().model_dump(),
        "recent_access": [event.model_dump() for event in recent],
    })


# ── App Factory ──────────────────────────────────────────────────────────────


async def on_startup(app: web.Application):
    if "service" not in app:
        app["service"] = await StreamService.setup()
    logger.info(f"Stream service started on {STREAM_HOST}:{STREAM_PORT}")


async def on_shutdown(app: web.Application):
    service: StreamService = app["service"]
    for ws in service.hub.all_sockets():
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


async def on_cleanup(app: web.Application):
    service: StreamService = app["service"]
    await service.cleanup()
    logger.info("Stream service stopped.")


def create_app(service: StreamService | None = None) -> web.Application:
    app = web.Application()
    if service is not None:
        app["service"] = service
    app.on_startup.append(on_startup)
    app.on_shutdown.append(on_shutdown)
    app.on_cleanup.append(on_cleanup)

    app.router.add_get("/ws/{user_id}", handle_ws)
    app.router.add_get("/health", handle_health)
    app.router.add_get("/sessions/{user_id}", handle_session_info)

    return app


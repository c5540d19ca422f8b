"""Async repository for the platform access audit log."""

from __future__ import annotations

import logging
import sys

import aiosqlite

from ..models.access_log import AccessEvent

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


class AccessLogRepository:
    """Append-only audit sink for platform access events in SQLite."""

    def __init__(self, db: aiosqlite.Connection):
        self._db = db

    async def record(self, event: AccessEvent):
        """Persist one access event."""
        await self._db.execute(
            """
            INSERT INTO access_logs (
                actor_id, actor_name, platform_id, platform_name, action,
                description, status, session_id, ip_address, user_agent, timestamp
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                event.actor_id, event.actor_name, event.platform_id,
                event.platform_name, event.action, event.description,
                event.status, event.session_id, event.ip_address,
                event.user_agent, event.timestamp,
            ),
        )
        await self._db.commit()
        logger.info(
            f"[AUDIT] {event.action} actor={event.actor_id} "
            f"platform={event.platform_name or event.platform_id} status={event.status}"
        )

    async def list_for_actor(self, actor_id: str, limit: int = 50) -> list[AccessEvent]:
        """Most recent events for one operator, newest first."""
        async with self._db.execute(
            "SELECT * FROM access_logs WHERE actor_id = ? ORDER BY timestamp DESC, id DESC LIMIT ?",
            (actor_id, limit),
        ) as cursor:
            rows = await cursor.fetchall()
            return [self._row_to_event(row, cursor.description) for row in rows]

    async def get_event_count(self) -> int:
        """Get total number of recorded access events."""
        async with self._db.execute("SELECT COUNT(*) FROM access_logs") as cursor:
            return (await cursor.fetchone())[0]

    def _row_to_event(self, row: tuple, description) -> AccessEvent:
        """Convert a database row to an AccessEvent model."""
        col_names = [d[0] for d in description]
        data = dict(zip(col_names, row))
        data.pop("id", None)
        return AccessEvent(**data)

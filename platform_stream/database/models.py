"""SQLite schema for the platform access audit log."""

from __future__ import annotations

import aiosqlite

SCHEMA = """
CREATE TABLE IF NOT EXISTS access_logs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    actor_id TEXT NOT NULL,
    actor_name TEXT DEFAULT '',
    platform_id TEXT DEFAULT '',
    platform_name TEXT DEFAULT '',
    action TEXT NOT NULL,
    description TEXT DEFAULT '',
    status TEXT NOT NULL DEFAULT 'success',
    session_id TEXT DEFAULT '',
    ip_address TEXT DEFAULT '',
    user_agent TEXT DEFAULT '',
    timestamp TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_access_actor ON access_logs(actor_id, timestamp);
CREATE INDEX IF NOT EXISTS idx_access_action ON access_logs(action, timestamp);
CREATE INDEX IF NOT EXISTS idx_access_timestamp ON access_logs(timestamp);
"""


async def initialize_db(db: aiosqlite.Connection):
    """Create tables and indexes if they don't exist."""
    await db.executescript(SCHEMA)
    await db.commit()

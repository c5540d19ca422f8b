"""Entry point for the remote platform streaming service.

Serves the per-user WebSocket channel and the health endpoint with aiohttp.
On SIGINT/SIGTERM every open socket is closed and every browser session is
torn down before the process exits.
"""

from __future__ import annotations

import logging
import sys

from aiohttp import web

from .config import LOG_LEVEL, STREAM_HOST, STREAM_PORT, ensure_dirs
from .session_manager.manager import create_app

logging.basicConfig(
    stream=sys.stderr,
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("platform-stream")

# Access logs and asyncio debug output drown out session logs
for noisy in ("aiohttp.access", "asyncio"):
    logging.getLogger(noisy).setLevel(logging.WARNING)


def main():
    """Run the streaming service until interrupted."""
    ensure_dirs()
    logger.info(f"Starting platform stream service on {STREAM_HOST}:{STREAM_PORT}...")
    web.run_app(create_app(), host=STREAM_HOST, port=STREAM_PORT, print=None)


if __name__ == "__main__":
    main()

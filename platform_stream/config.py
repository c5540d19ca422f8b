"""Application configuration loaded from environment variables."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
DATA_DIR = Path(os.getenv("DATA_DIR", Path(__file__).parent.parent / "data"))
DB_PATH = Path(os.getenv("DB_PATH", DATA_DIR / "access_logs.db"))

# Server
STREAM_HOST = os.getenv("STREAM_HOST", "127.0.0.1")
STREAM_PORT = int(os.getenv("STREAM_PORT", "5001"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Browser
BROWSER_HEADLESS = os.getenv("BROWSER_HEADLESS", "true").lower() == "true"
VIEWPORT_WIDTH = int(os.getenv("VIEWPORT_WIDTH", "1280"))
VIEWPORT_HEIGHT = int(os.getenv("VIEWPORT_HEIGHT", "720"))
BROWSER_USER_AGENT = os.getenv(
    "BROWSER_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36",
)
# The container runs without a user namespace, so Chromium's sandbox is off.
CHROMIUM_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-accelerated-2d-canvas",
    "--no-first-run",
    "--no-zygote",
    "--disable-gpu",
]

# Navigation
NAVIGATION_TIMEOUT_MS = int(os.getenv("NAVIGATION_TIMEOUT_MS", "30000"))
SETTLE_DELAY_SECONDS = float(os.getenv("SETTLE_DELAY_SECONDS", "2.0"))
LOGIN_SETTLE_DELAY_SECONDS = float(os.getenv("LOGIN_SETTLE_DELAY_SECONDS", "3.0"))

# Login heuristics
FIELD_PROBE_TIMEOUT_MS = 2000
SUBMIT_PROBE_TIMEOUT_MS = 1000
POST_SUBMIT_DELAY_SECONDS = float(os.getenv("POST_SUBMIT_DELAY_SECONDS", "5.0"))
SCRIPT_LOGIN_DELAY_SECONDS = 2.0
TYPE_DELAY_MS = 50
RETYPE_DELAY_SECONDS = 0.1

# Streaming
CAPTURE_INTERVAL_SECONDS = float(os.getenv("CAPTURE_INTERVAL_SECONDS", "1.0"))
SCREENSHOT_QUALITY = int(os.getenv("SCREENSHOT_QUALITY", "80"))
INTERACTION_SETTLE_SECONDS = 0.1


def ensure_dirs():
    """Create required data directories if they don't exist."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
    DB_PATH.parent.mkdir(parents=True, exist_ok=True)

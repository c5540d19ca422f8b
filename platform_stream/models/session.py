"""Pydantic models for session state."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class SessionInfo(BaseModel):
    """Public snapshot of a live streaming session."""

    user_id: str
    platform: str = ""
    employee: str = ""
    start_time: str = ""
    is_logged_in: bool = False
    cookie_count: int = 0
    session_id: str = ""
    current_url: Optional[str] = None

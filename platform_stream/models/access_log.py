"""Pydantic model for platform access audit events."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field

from ..constants import ACCESS_SUCCESS, ACTION_PLATFORM_ACCESS, AUDIT_USER_AGENT


class AccessEvent(BaseModel):
    """One attempted or successful platform access, reported to the audit sink."""

    actor_id: str
    actor_name: str = ""
    platform_id: str = ""
    platform_name: str = ""
    action: str = ACTION_PLATFORM_ACCESS
    description: str = ""
    status: str = ACCESS_SUCCESS  # "success" or "failed"
    session_id: str = ""
    ip_address: str = "127.0.0.1"
    user_agent: str = AUDIT_USER_AGENT
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

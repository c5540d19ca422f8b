"""Pydantic model for remote input events relayed onto the live page."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Interaction(BaseModel):
    """A single remote input event.

    ``type`` is one of "click", "type", "keypress", "scroll". Other kinds
    are accepted here and ignored by the relay.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str
    x: Optional[float] = None
    y: Optional[float] = None
    text: str = ""
    key: str = ""
    delta_y: float = Field(default=0, alias="deltaY")

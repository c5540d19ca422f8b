"""Failure taxonomy for the streaming engine.

Heuristic login failures are deliberately absent: an exhausted login chain
degrades to manual control and is reported as a ``LoginOutcome``.
"""

from __future__ import annotations


class StreamError(Exception):
    """Base class for failures scoped to a single user's session."""


class LaunchFailure(StreamError):
    """The browser or page for a new session could not be allocated."""


class NavigationTimeout(StreamError):
    """The target platform did not load within the navigation timeout."""


class NoActiveSession(StreamError):
    """An operation targeted a user with no live session."""

    def __init__(self, user_id: str):
        super().__init__(f"No active session for user {user_id}")
        self.user_id = user_id


class InteractionFailed(StreamError):
    """A relayed input event could not be applied to the live page."""


class CaptureFailure(StreamError):
    """A frame could not be captured; ends the capture loop only."""

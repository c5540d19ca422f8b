"""
Pytest fixtures for the streaming engine tests.

Playwright objects are replaced by MagicMock/AsyncMock fakes so the suite
runs without a browser, display or network access.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from platform_stream.models.platform import IdentityDescriptor, PlatformDescriptor
from platform_stream.session_manager.events import EventChannel
from platform_stream.session_manager.session import Session


class RecordingChannel(EventChannel):
    """Channel that keeps every emitted event in order."""

    def __init__(self, user_id: str = "emp-1"):
        self.user_id = user_id
        self.events: list[tuple[str, Any]] = []

    async def emit(self, event: str, data: Any = None):
        self.events.append((event, data))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]

    def of(self, event: str) -> list[Any]:
        return [data for name, data in self.events if name == event]

    def statuses(self) -> list[str]:
        return [data["status"] for data in self.of("login-status")]


def make_page(url: str = "https://portal.example.com/login") -> MagicMock:
    """Fake Playwright page with no login form on it."""
    page = MagicMock(name="page")
    page.url = url
    page.is_closed = MagicMock(return_value=False)
    page.goto = AsyncMock()
    page.screenshot = AsyncMock(return_value=b"\xff\xd8jpeg-bytes")
    page.evaluate = AsyncMock(return_value=None)
    page.wait_for_selector = AsyncMock(side_effect=_timeout)
    page.query_selector = AsyncMock(return_value=None)
    page.query_selector_all = AsyncMock(return_value=[])
    page.set_default_timeout = MagicMock()
    page.mouse.click = AsyncMock()
    page.mouse.wheel = AsyncMock()
    page.keyboard.type = AsyncMock()
    page.keyboard.press = AsyncMock()
    page.context.cookies = AsyncMock(return_value=[{"name": "sid", "value": "abc"}])
    page.main_frame = MagicMock(name="main_frame")
    page.frames = [page.main_frame]
    return page


def make_field(value_after_typing: str | None = None, visible: bool = True) -> MagicMock:
    """Fake input element; ``input_value`` reports what typing produced."""
    field = MagicMock(name="field")
    field.focus = AsyncMock()
    field.select_text = AsyncMock()
    field.click = AsyncMock()
    field.press = AsyncMock()
    field.evaluate = AsyncMock()
    field.bounding_box = AsyncMock(
        return_value={"x": 10, "y": 10, "width": 200, "height": 30} if visible else None
    )
    typed: list[str] = []

    async def type_(value, delay=0):
        typed.append(value)

    field.type = AsyncMock(side_effect=type_)

    async def input_value():
        if value_after_typing is not None:
            return value_after_typing
        return typed[-1] if typed else ""

    field.input_value = AsyncMock(side_effect=input_value)
    return field


def _timeout(*args, **kwargs):
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    raise PlaywrightTimeoutError("Timeout 2000ms exceeded.")


class FakeLauncher:
    """Launcher that hands out sessions backed by fake pages.

    ``log`` records launches and browser closes in the order they happen.
    """

    def __init__(self, page_factory=make_page):
        self.page_factory = page_factory
        self.log: list[str] = []
        self.sessions: list[Session] = []
        self.fail_next = False

    async def launch(self, user_id, platform, identity, channel) -> Session:
        from platform_stream.session_manager.errors import LaunchFailure

        if self.fail_next:
            self.fail_next = False
            raise LaunchFailure("chromium exited with code 1")

        index = len(self.sessions)
        self.log.append(f"launch:{user_id}:{index}")
        browser = MagicMock(name=f"browser-{index}")

        async def close():
            self.log.append(f"close:{user_id}:{index}")

        browser.close = AsyncMock(side_effect=close)
        session = Session(user_id, browser, self.page_factory(), platform, identity)
        self.sessions.append(session)
        return session

    async def stop(self):
        self.log.append("stop")


@pytest.fixture
def platform() -> PlatformDescriptor:
    return PlatformDescriptor(
        _id="plat-42",
        platformName="Client Portal",
        url="portal.example.com/login",
        email="ops@example.com",
        password="s3cret-pass",
    )


@pytest.fixture
def identity() -> IdentityDescriptor:
    return IdentityDescriptor(_id="emp-1", fullName="Dana Reyes")


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


def selector_page(fields: dict) -> MagicMock:
    """Fake page whose selector waits resolve only the given selectors."""
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    page = make_page()

    async def wait_for_selector(selector, timeout=None, state=None):
        if selector in fields:
            return fields[selector]
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")

    async def query_selector_all(selector):
        return [fields[selector]] if selector in fields else []

    page.wait_for_selector = AsyncMock(side_effect=wait_for_selector)
    page.query_selector_all = AsyncMock(side_effect=query_selector_all)
    return page

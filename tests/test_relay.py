"""Tests for the interaction relay."""

import time
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio

from platform_stream.models.interaction import Interaction
from platform_stream.session_manager.errors import InteractionFailed, NoActiveSession
from platform_stream.session_manager.registry import SessionRegistry
from platform_stream.session_manager.relay import InteractionRelay

pytestmark = pytest.mark.unit


@pytest_asyncio.fixture
async def relay_and_page(launcher, platform, identity, channel):
    registry = SessionRegistry(launcher)
    session = await registry.start_or_replace("emp-1", platform, identity, channel)
    return InteractionRelay(registry, settle_delay=0.1), session.page


@pytest.mark.asyncio
async def test_no_session_raises(launcher):
    relay = InteractionRelay(SessionRegistry(launcher), settle_delay=0)

    with pytest.raises(NoActiveSession):
        await relay.apply("emp-1", Interaction(type="click", x=1, y=2))

    assert launcher.log == []


@pytest.mark.asyncio
async def test_click(relay_and_page):
    relay, page = relay_and_page

    await relay.apply("emp-1", Interaction(type="click", x=640, y=360))

    page.mouse.click.assert_awaited_once_with(640, 360)


@pytest.mark.asyncio
async def test_type_and_keypress(relay_and_page):
    relay, page = relay_and_page

    await relay.apply("emp-1", Interaction(type="type", text="hello"))
    await relay.apply("emp-1", Interaction(type="keypress", key="Enter"))

    page.keyboard.type.assert_awaited_once_with("hello", delay=50)
    page.keyboard.press.assert_awaited_once_with("Enter")


@pytest.mark.asyncio
async def test_scroll_applies_wheel_and_returns_promptly(relay_and_page):
    relay, page = relay_and_page

    started = time.monotonic()
    await relay.apply("emp-1", Interaction.model_validate({"type": "scroll", "deltaY": 300}))
    elapsed = time.monotonic() - started

    page.mouse.wheel.assert_awaited_once_with(0, 300)
    assert 0.09 <= elapsed < 0.5


@pytest.mark.asyncio
async def test_unknown_kind_is_ignored(relay_and_page):
    relay, page = relay_and_page

    await relay.apply("emp-1", Interaction(type="hover"))

    page.mouse.click.assert_not_awaited()
    page.keyboard.type.assert_not_awaited()


@pytest.mark.asyncio
async def test_page_failure_is_wrapped(relay_and_page):
    relay, page = relay_and_page
    page.keyboard.press = AsyncMock(side_effect=Exception("Target closed"))

    with pytest.raises(InteractionFailed):
        await relay.apply("emp-1", Interaction(type="keypress", key="Tab"))


@pytest.mark.asyncio
async def test_closed_session_raises_no_active_session(launcher, platform, identity, channel):
    registry = SessionRegistry(launcher)
    await registry.start_or_replace("emp-1", platform, identity, channel)
    await registry.close("emp-1")

    with pytest.raises(NoActiveSession):
        await InteractionRelay(registry).apply("emp-1", Interaction(type="scroll", deltaY=10))

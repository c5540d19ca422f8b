"""Tests for URL normalization and the navigation controller."""

from unittest.mock import AsyncMock

import pytest

from conftest import make_page
from platform_stream.session_manager.errors import NavigationTimeout
from platform_stream.session_manager.navigation import NavigationController, normalize_url

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("portal.example.com", "https://portal.example.com"),
        ("  portal.example.com/login ", "https://portal.example.com/login"),
        ("http://intranet.local", "http://intranet.local"),
        ("https://portal.example.com", "https://portal.example.com"),
    ],
)
def test_normalize_url(raw, expected):
    assert normalize_url(raw) == expected


@pytest.mark.asyncio
async def test_navigate_emits_status_then_waits_for_network_idle(channel):
    page = make_page()

    await NavigationController(timeout_ms=30000, settle_delay=0).navigate(
        page, "portal.example.com", channel, "Client Portal"
    )

    assert channel.statuses() == ["navigating"]
    assert "Client Portal" in channel.of("login-status")[0]["message"]
    page.goto.assert_awaited_once_with(
        "https://portal.example.com", wait_until="networkidle", timeout=30000
    )


@pytest.mark.asyncio
async def test_navigate_timeout_raises(channel):
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    page = make_page()
    page.goto = AsyncMock(side_effect=PlaywrightTimeoutError("Timeout 30000ms exceeded."))

    with pytest.raises(NavigationTimeout):
        await NavigationController(settle_delay=0).navigate(page, "slow.example.com", channel)


@pytest.mark.asyncio
async def test_unreachable_host_raises_navigation_timeout():
    page = make_page()
    page.goto = AsyncMock(side_effect=Exception("net::ERR_NAME_NOT_RESOLVED"))

    with pytest.raises(NavigationTimeout, match="ERR_NAME_NOT_RESOLVED"):
        await NavigationController(settle_delay=0).navigate(page, "nowhere.invalid")

"""Tests for the page event bridge and the per-user channel hub."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_page
from platform_stream.session_manager.events import ChannelHub, EventBridge

pytestmark = pytest.mark.unit


def attached_handlers(channel):
    page = make_page()
    EventBridge().attach(page, channel)
    return {call.args[0]: call.args[1] for call in page.on.call_args_list}


def test_bridge_wires_console_error_and_dialog(channel):
    handlers = attached_handlers(channel)

    assert set(handlers) == {"console", "pageerror", "dialog"}


def test_console_output_is_not_forwarded(channel):
    handlers = attached_handlers(channel)

    handlers["console"](MagicMock(type="log", text="hello"))

    assert channel.events == []


@pytest.mark.asyncio
async def test_page_error_forwarded(channel):
    handlers = attached_handlers(channel)

    await handlers["pageerror"](MagicMock(message="ReferenceError: foo is not defined"))

    assert channel.events == [("page-error", {"message": "ReferenceError: foo is not defined"})]


@pytest.mark.asyncio
async def test_dialog_forwarded_then_accepted(channel):
    handlers = attached_handlers(channel)
    dialog = MagicMock(type="confirm", message="Leave this page?")
    dialog.accept = AsyncMock()

    await handlers["dialog"](dialog)

    assert channel.events == [("page-dialog", {"type": "confirm", "message": "Leave this page?"})]
    dialog.accept.assert_awaited_once()


def fake_socket(closed=False):
    ws = MagicMock(closed=closed)
    ws.send_json = AsyncMock()
    return ws


@pytest.mark.asyncio
async def test_hub_broadcasts_to_user_sockets_only():
    hub = ChannelHub()
    mine, other = fake_socket(), fake_socket()
    hub.subscribe("emp-1", mine)
    hub.subscribe("emp-2", other)

    await hub.channel("emp-1").emit("stream-stopped", {"success": True})

    mine.send_json.assert_awaited_once_with({"event": "stream-stopped", "data": {"success": True}})
    other.send_json.assert_not_awaited()


@pytest.mark.asyncio
async def test_hub_drops_failing_and_closed_sockets():
    hub = ChannelHub()
    broken, closed, healthy = fake_socket(), fake_socket(closed=True), fake_socket()
    broken.send_json = AsyncMock(side_effect=ConnectionResetError("peer gone"))
    for ws in (broken, closed, healthy):
        hub.subscribe("emp-1", ws)

    await hub.broadcast("emp-1", "screenshot", {"image": "data:"})

    healthy.send_json.assert_awaited_once()
    assert hub.subscriber_count("emp-1") == 1

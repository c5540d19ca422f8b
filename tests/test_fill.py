"""Tests for the field fill engine."""

from unittest.mock import AsyncMock

import pytest

from conftest import make_field, make_page
from platform_stream.session_manager.fill import CLEAR_FIELD_JS, FieldFiller

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_fill_types_over_selected_content():
    page, field = make_page(), make_field()

    ok = await FieldFiller(type_delay_ms=50, retype_delay=0).fill(page, field, "ops@example.com")

    assert ok is True
    field.focus.assert_awaited_once()
    field.select_text.assert_awaited_once()
    field.type.assert_awaited_once_with("ops@example.com", delay=50)
    field.evaluate.assert_not_awaited()
    page.keyboard.type.assert_not_awaited()


@pytest.mark.asyncio
async def test_fill_retypes_per_character_on_mismatch():
    page = make_page()
    field = make_field(value_after_typing="ops@exa")

    ok = await FieldFiller(retype_delay=0).fill(page, field, "abc")

    assert ok is False
    field.evaluate.assert_awaited_once_with(CLEAR_FIELD_JS)
    typed = [call.args[0] for call in page.keyboard.type.await_args_list]
    assert typed == ["a", "b", "c"]


@pytest.mark.asyncio
async def test_fill_never_raises():
    page, field = make_page(), make_field()
    field.focus = AsyncMock(side_effect=Exception("Element is not attached to the DOM"))

    ok = await FieldFiller(retype_delay=0).fill(page, field, "secret")

    assert ok is False


@pytest.mark.asyncio
async def test_fill_skips_empty_value():
    page, field = make_page(), make_field()

    assert await FieldFiller().fill(page, field, "") is False
    field.focus.assert_not_awaited()

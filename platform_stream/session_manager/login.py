"""Heuristic credential injection into unknown third-party login forms.

Strategies run in a fixed order against the current page and the chain
stops at the first one that reports success:

1. DirectFieldProbe     - short list of common id/name selectors
2. EnhancedFieldProbe   - extended id/name/class/placeholder/aria/positional selectors
3. FrameProbe           - the same patterns inside embedded frames
4. ScriptInjection      - set values through the live DOM and submit from script

"Success" is a best-effort signal: fields were found and a submit path ran,
or the page navigated away mid-attempt. It does not verify that the
platform actually authenticated the session.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from typing import Optional, Union

from playwright.async_api import ElementHandle, Frame, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import (
    FIELD_PROBE_TIMEOUT_MS,
    POST_SUBMIT_DELAY_SECONDS,
    SCRIPT_LOGIN_DELAY_SECONDS,
    SUBMIT_PROBE_TIMEOUT_MS,
)
from ..constants import (
    DEDICATED_LOGIN_BUTTON,
    DIRECT_EMAIL_SELECTORS,
    DIRECT_PASSWORD_SELECTORS,
    ENHANCED_EMAIL_SELECTORS,
    ENHANCED_PASSWORD_SELECTORS,
    ENHANCED_SUBMIT_SELECTORS,
    FRAME_EMAIL_SELECTOR,
    FRAME_PASSWORD_SELECTOR,
    FRAME_SUBMIT_SELECTOR,
    GENERIC_SUBMIT_SELECTORS,
    NAVIGATION_SIGNALS,
    PAGE_CLOSED_SIGNALS,
    SCRIPT_EMAIL_SELECTORS,
    SUBMIT_BUTTON_TEXTS,
)
from ..models.platform import PlatformDescriptor
from .fill import FieldFiller

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(asctime)s [%(name)s] %(levelname)s: %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)

Scope = Union[Page, Frame]

# Clicks the first visible submit control, falling back to text match and
# then to a plain form submit. Returns how it submitted, or null.
SUBMIT_FORM_JS = """
({ dedicated, selectors, texts }) => {
    const visible = (el) => el && el.offsetParent !== null;
    if (dedicated) {
        const button = document.querySelector(dedicated);
        if (visible(button)) { button.click(); return 'dedicated'; }
    }
    for (const selector of selectors) {
        const button = document.querySelector(selector);
        if (visible(button)) { button.click(); return selector; }
    }
    if (texts.length) {
        const buttons = Array.from(document.querySelectorAll('button, input[type="submit"]'));
        for (const button of buttons) {
            const label = (button.textContent || button.value || '').toLowerCase();
            if (texts.some((t) => label.includes(t))) { button.click(); return 'text'; }
        }
    }
    const form = document.querySelector('form');
    if (form) { form.submit(); return 'form'; }
    return null;
}
"""

SCRIPT_LOGIN_JS = """
({ email, password, selectors }) => {
    let emailField = null;
    for (const selector of selectors) {
        emailField = document.querySelector(selector);
        if (emailField && emailField.offsetParent !== null) break;
    }
    const passwordField = document.querySelector('input[type="password"]');
    if (!emailField || !passwordField) return false;

    const assign = (el, value) => {
        el.value = value;
        el.dispatchEvent(new Event('input', { bubbles: true }));
        el.dispatchEvent(new Event('change', { bubbles: true }));
    };
    assign(emailField, email);
    assign(passwordField, password);

    const submit = document.querySelector('button[type="submit"], input[type="submit"]');
    if (submit) {
        submit.click();
    } else {
        passwordField.dispatchEvent(new KeyboardEvent('keydown', { key: 'Enter', bubbles: true }));
    }
    return true;
}
"""


def is_navigation_error(error: BaseException) -> bool:
    """True if ``error`` means the document was replaced under the call."""
    message = str(error)
    return any(signal in message for signal in NAVIGATION_SIGNALS)


def is_page_closed_error(error: BaseException) -> bool:
    message = str(error)
    return any(signal in message for signal in PAGE_CLOSED_SIGNALS)


@dataclass
class StrategyResult:
    """Result of a single strategy attempt."""

    success: bool
    reason: str = ""


@dataclass
class LoginOutcome:
    """Result of the whole chain. ``success`` is a heuristic, not proof of login."""

    success: bool
    strategy: str = ""
    reason: str = ""


async def probe_field(
    scope: Scope,
    selectors: list[str],
    timeout_ms: int,
    scan_all: bool = False,
) -> Optional[ElementHandle]:
    """Return the first visible element matching any selector, in list order.

    Each selector gets its own bounded wait. With ``scan_all`` every match of
    a selector is checked for a bounding box, not just the first.
    """
    for selector in selectors:
        try:
            if not scan_all:
                handle = await scope.wait_for_selector(selector, timeout=timeout_ms)
                if handle is not None and await handle.bounding_box():
                    return handle
                continue

            await scope.wait_for_selector(selector, timeout=timeout_ms, state="attached")
            for handle in await scope.query_selector_all(selector):
                if await handle.bounding_box():
                    return handle
        except PlaywrightTimeoutError:
            continue
        except Exception as e:
            if is_navigation_error(e) or is_page_closed_error(e):
                raise
            logger.debug(f"[LOGIN] Probe of {selector!r} failed: {e}")
    return None


async def submit_via_script(
    scope: Scope,
    selectors: list[str],
    dedicated: Optional[str] = None,
    texts: Optional[list[str]] = None,
) -> Optional[str]:
    return await scope.evaluate(
        SUBMIT_FORM_JS,
        {"dedicated": dedicated, "selectors": selectors, "texts": texts or []},
    )


class LoginStrategy:
    """One login attempt against the current page state."""

    name = "strategy"

    async def attempt(self, page: Page, platform: PlatformDescriptor) -> StrategyResult:
        raise NotImplementedError


class DirectFieldProbe(LoginStrategy):
    """Common id/name selectors, then a scripted submit or Enter."""

    name = "direct"

    def __init__(
        self,
        filler: Optional[FieldFiller] = None,
        probe_timeout_ms: int = FIELD_PROBE_TIMEOUT_MS,
        post_submit_delay: float = POST_SUBMIT_DELAY_SECONDS,
    ):
        self._filler = filler or FieldFiller()
        self._probe_timeout_ms = probe_timeout_ms
        self._post_submit_delay = post_submit_delay

    async def attempt(self, page: Page, platform: PlatformDescriptor) -> StrategyResult:
        email_field = await probe_field(page, DIRECT_EMAIL_SELECTORS, self._probe_timeout_ms)
        password_field = await probe_field(page, DIRECT_PASSWORD_SELECTORS, self._probe_timeout_ms)
        if email_field is None or password_field is None:
            return StrategyResult(False, "login fields not found")

        await self._filler.fill(page, email_field, platform.email)
        await self._filler.fill(page, password_field, platform.password)

        submitted = await submit_via_script(
            page, GENERIC_SUBMIT_SELECTORS, dedicated=DEDICATED_LOGIN_BUTTON
        )
        if not submitted:
            await password_field.press("Enter")
            submitted = "enter"

        await asyncio.sleep(self._post_submit_delay)
        return StrategyResult(True, f"submitted via {submitted}")


class EnhancedFieldProbe(LoginStrategy):
    """Extended selector set for fields and submit controls."""

    name = "enhanced"

    def __init__(
        self,
        filler: Optional[FieldFiller] = None,
        probe_timeout_ms: int = FIELD_PROBE_TIMEOUT_MS,
        submit_timeout_ms: int = SUBMIT_PROBE_TIMEOUT_MS,
    ):
        self._filler = filler or FieldFiller()
        self._probe_timeout_ms = probe_timeout_ms
        self._submit_timeout_ms = submit_timeout_ms

    async def attempt(self, page: Page, platform: PlatformDescriptor) -> StrategyResult:
        email_field = await probe_field(
            page, ENHANCED_EMAIL_SELECTORS, self._probe_timeout_ms, scan_all=True
        )
        password_field = await probe_field(
            page, ENHANCED_PASSWORD_SELECTORS, self._probe_timeout_ms, scan_all=True
        )
        if email_field is None or password_field is None:
            return StrategyResult(False, "login fields not found")

        await self._filler.fill(page, email_field, platform.email)
        await self._filler.fill(page, password_field, platform.password)

        button = await probe_field(
            page, ENHANCED_SUBMIT_SELECTORS, self._submit_timeout_ms, scan_all=True
        )
        if button is not None:
            await button.click()
            return StrategyResult(True, "submitted via button")

        submitted = await submit_via_script(
            page, [], dedicated=DEDICATED_LOGIN_BUTTON, texts=SUBMIT_BUTTON_TEXTS
        )
        if submitted:
            return StrategyResult(True, f"submitted via {submitted}")

        await password_field.press("Enter")
        return StrategyResult(True, "submitted via enter")


class FrameProbe(LoginStrategy):
    """Looks for the login form inside each embedded frame."""

    name = "frame"

    def __init__(self, filler: Optional[FieldFiller] = None):
        self._filler = filler or FieldFiller()

    async def attempt(self, page: Page, platform: PlatformDescriptor) -> StrategyResult:
        for frame in page.frames:
            if frame == page.main_frame:
                continue
            try:
                email_field = await frame.query_selector(FRAME_EMAIL_SELECTOR)
                password_field = await frame.query_selector(FRAME_PASSWORD_SELECTOR)
                if email_field is None or password_field is None:
                    continue

                await self._filler.fill(page, email_field, platform.email)
                await self._filler.fill(page, password_field, platform.password)

                button = await frame.query_selector(FRAME_SUBMIT_SELECTOR)
                if button is not None:
                    await button.click()
                else:
                    await password_field.press("Enter")
                return StrategyResult(True, f"submitted inside frame {frame.url}")
            except Exception as e:
                if is_navigation_error(e) or is_page_closed_error(e):
                    raise
                logger.debug(f"[LOGIN] Frame {frame.url} skipped: {e}")
        return StrategyResult(False, "no frame with login fields")


class ScriptInjection(LoginStrategy):
    """Sets field values through the DOM instead of simulating keystrokes."""

    name = "script"

    def __init__(self, delay: float = SCRIPT_LOGIN_DELAY_SECONDS):
        self._delay = delay

    async def attempt(self, page: Page, platform: PlatformDescriptor) -> StrategyResult:
        # Late-rendered forms
        await asyncio.sleep(self._delay)
        injected = await page.evaluate(
            SCRIPT_LOGIN_JS,
            {
                "email": platform.email,
                "password": platform.password,
                "selectors": SCRIPT_EMAIL_SELECTORS,
            },
        )
        if injected:
            return StrategyResult(True, "values injected via script")
        return StrategyResult(False, "login fields not found")


def default_strategies(filler: Optional[FieldFiller] = None) -> list[LoginStrategy]:
    filler = filler or FieldFiller()
    return [
        DirectFieldProbe(filler),
        EnhancedFieldProbe(filler),
        FrameProbe(filler),
        ScriptInjection(),
    ]


class LoginStrategyChain:
    """Runs strategies in order, short-circuiting on the first success."""

    def __init__(self, strategies: Optional[list[LoginStrategy]] = None):
        self.strategies = strategies if strategies is not None else default_strategies()

    async def attempt_login(self, page: Page, platform: PlatformDescriptor) -> LoginOutcome:
        """Try each strategy until one reports success.

        A URL change after a failed strategy, or an error raised because the
        document was replaced, counts as success: the submit most likely
        triggered a page transition. A closed page ends the chain as a
        failure.
        """
        start_url = page.url

        for strategy in self.strategies:
            if page.is_closed():
                return LoginOutcome(False, strategy.name, "page closed")

            logger.info(f"[LOGIN] Trying {strategy.name} strategy")
            try:
                result = await strategy.attempt(page, platform)
            except Exception as e:
                if is_page_closed_error(e) or page.is_closed():
                    logger.info(f"[LOGIN] Page closed during {strategy.name} strategy")
                    return LoginOutcome(False, strategy.name, "page closed")
                if is_navigation_error(e):
                    logger.info(f"[LOGIN] Page navigated during {strategy.name} strategy")
                    return LoginOutcome(True, strategy.name, "page navigated during login")
                logger.warning(f"[LOGIN] {strategy.name} strategy failed: {e}")
                result = StrategyResult(False, str(e))

            if result.success:
                logger.info(f"[LOGIN] {strategy.name} strategy succeeded: {result.reason}")
                return LoginOutcome(True, strategy.name, result.reason)

            if not page.is_closed() and page.url != start_url:
                logger.info(f"[LOGIN] URL changed after {strategy.name} strategy: {page.url}")
                return LoginOutcome(True, strategy.name, "page navigated during login")

            logger.info(f"[LOGIN] {strategy.name} strategy found nothing: {result.reason}")

        return LoginOutcome(False, "", "all strategies exhausted")

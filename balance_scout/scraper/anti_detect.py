"""
Balance Scout - Anti-Detection Layer

Human-like keystroke cadence, think pauses and the page fingerprint
(user agent, viewport, locale, proxy) used to keep the balance portal's
timing-based bot detection quiet.
"""

from __future__ import annotations

import asyncio
import random
from typing import Any

import structlog

from balance_scout.config import settings

logger = structlog.get_logger(__name__)


class HumanInputEmulator:
    """
    Anti-detection wrapper for Playwright form input.

    Manages:
    - Per-keystroke delays between KEYSTROKE_DELAY_MIN_MS and KEYSTROKE_DELAY_MAX_MS
    - Occasional longer hesitation after a keystroke
    - Think pause before submitting a form
    - Browser context fingerprint and proxy configuration
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()
        self._keystroke_min: int = settings.KEYSTROKE_DELAY_MIN_MS
        self._keystroke_max: int = settings.KEYSTROKE_DELAY_MAX_MS
        self._pause_probability: float = settings.KEYSTROKE_PAUSE_PROBABILITY
        self._pause_min: int = settings.KEYSTROKE_PAUSE_MIN_MS
        self._pause_max: int = settings.KEYSTROKE_PAUSE_MAX_MS

    async def type_human_like(self, page: Any, selector: str, text: str) -> None:
        """
        Clear a field and type text into it one character at a time.

        Args:
            page: Playwright Page object.
            selector: CSS selector of the input field.
            text: Text to enter.
        """
        await page.eval_on_selector(selector, "el => { el.value = ''; }")
        field = page.locator(selector)

        for char in text:
            await self.random_delay(self._keystroke_min, self._keystroke_max)
            await field.press_sequentially(char)
            if self._rng.random() < self._pause_probability:
                await self.random_delay(self._pause_min, self._pause_max)

        logger.debug(
            "human_input_typed",
            selector=selector,
            characters=len(text),
            source="anti_detect",
        )

    async def random_delay(self, min_ms: int, max_ms: int) -> None:
        """Sleep for a random duration between min_ms and max_ms."""
        await asyncio.sleep(self._rng.uniform(min_ms, max_ms) / 1000)

    async def think_pause(self) -> None:
        """Hesitate before a submission the way a person re-reads a form."""
        await self.random_delay(settings.THINK_PAUSE_MIN_MS, settings.THINK_PAUSE_MAX_MS)

    def context_options(self) -> dict[str, Any]:
        """Keyword arguments for Browser.new_context()."""
        options: dict[str, Any] = {
            "user_agent": settings.USER_AGENT,
            "viewport": {"width": settings.VIEWPORT_WIDTH, "height": settings.VIEWPORT_HEIGHT},
            "locale": settings.LOCALE,
        }
        proxy = self.get_proxy_config()
        if proxy is not None:
            options["proxy"] = proxy
        return options

    def get_proxy_config(self) -> dict[str, str] | None:
        """Return proxy configuration if PROXY_URL is set."""
        if settings.PROXY_URL:
            return {"server": settings.PROXY_URL}
        return None

"""
Balance Scout - Browser Session Manager

Owns the one Chromium process shared by every balance check. The browser is
launched lazily on first use, reused while connected, and replaced
transparently when it has disconnected. Acquisition is single-flight:
concurrent first callers wait on one launch instead of starting several.
"""

from __future__ import annotations

import asyncio

import structlog
from playwright.async_api import Browser, Playwright, async_playwright

from balance_scout.config import settings
from balance_scout.exceptions import BrowserLaunchFailure

logger = structlog.get_logger(__name__)


class SessionManager:
    """
    Lifecycle owner of the shared browser.

    Usage:
        sessions = SessionManager()
        browser = await sessions.acquire_browser(headless=True)
        ...
        await sessions.shutdown()  # hosting process only
    """

    def __init__(self) -> None:
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._lock = asyncio.Lock()
        self.launch_count = 0

    @property
    def is_alive(self) -> bool:
        """True when a browser exists and reports itself connected."""
        return self._browser is not None and self._browser.is_connected()

    async def acquire_browser(self, headless: bool = True) -> Browser:
        """
        Return the shared browser, launching it if needed.

        Args:
            headless: Launch mode, used only when a new process is started.

        Returns:
            A connected Playwright Browser.

        Raises:
            BrowserLaunchFailure: If Chromium could not be started.
        """
        async with self._lock:
            if self.is_alive:
                return self._browser

            if self._browser is not None:
                logger.warning("browser_disconnected_replacing", source="session")
                self._browser = None

            self._browser = await self._launch(headless)
            return self._browser

    async def _launch(self, headless: bool) -> Browser:
        try:
            if self._playwright is None:
                self._playwright = await async_playwright().start()
            browser = await self._playwright.chromium.launch(
                headless=headless,
                args=list(settings.BROWSER_LAUNCH_ARGS),
            )
        except Exception as e:
            logger.error(
                "browser_launch_failed",
                headless=headless,
                error=str(e),
                error_type=type(e).__name__,
                source="session",
            )
            raise BrowserLaunchFailure(f"Could not launch Chromium: {e}") from e

        self.launch_count += 1
        logger.info(
            "browser_launched",
            headless=headless,
            launch_count=self.launch_count,
            source="session",
        )
        return browser

    async def shutdown(self) -> None:
        """Close the browser and stop the Playwright driver."""
        async with self._lock:
            if self._browser is not None:
                try:
                    await self._browser.close()
                finally:
                    self._browser = None
            if self._playwright is not None:
                try:
                    await self._playwright.stop()
                finally:
                    self._playwright = None
        logger.info("browser_shutdown_complete", source="session")

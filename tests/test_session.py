"""
Tests for the browser SessionManager.

Validates lazy launch, reuse, single-flight acquisition, replacement of a
disconnected browser and launch-failure reporting.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from balance_scout.exceptions import BrowserLaunchFailure
from balance_scout.scraper.session import SessionManager


def _browser() -> MagicMock:
    browser = MagicMock()
    browser.is_connected = MagicMock(return_value=True)
    browser.close = AsyncMock()
    return browser


@pytest.fixture
def playwright_driver():
    """Patch async_playwright(); yields the driver whose chromium.launch is mocked."""
    driver = MagicMock()
    driver.stop = AsyncMock()

    async def slow_launch(**kwargs):
        # Yield to the loop so concurrent acquirers can interleave
        await asyncio.sleep(0.01)
        return _browser()

    driver.chromium.launch = AsyncMock(side_effect=slow_launch)

    with patch("balance_scout.scraper.session.async_playwright") as mock_async_playwright:
        mock_async_playwright.return_value.start = AsyncMock(return_value=driver)
        yield driver


@pytest.mark.asyncio
async def test_first_acquire_launches(playwright_driver: MagicMock) -> None:
    sessions = SessionManager()
    browser = await sessions.acquire_browser(headless=True)

    assert browser is not None
    assert sessions.is_alive is True
    assert sessions.launch_count == 1
    kwargs = playwright_driver.chromium.launch.await_args.kwargs
    assert kwargs["headless"] is True
    assert "--disable-gpu" in kwargs["args"]
    assert "--no-sandbox" in kwargs["args"]


@pytest.mark.asyncio
async def test_headed_launch(playwright_driver: MagicMock) -> None:
    sessions = SessionManager()
    await sessions.acquire_browser(headless=False)
    assert playwright_driver.chromium.launch.await_args.kwargs["headless"] is False


@pytest.mark.asyncio
async def test_connected_browser_reused(playwright_driver: MagicMock) -> None:
    sessions = SessionManager()
    first = await sessions.acquire_browser()
    second = await sessions.acquire_browser()

    assert first is second
    assert playwright_driver.chromium.launch.await_count == 1


@pytest.mark.asyncio
async def test_concurrent_first_use_is_single_flight(playwright_driver: MagicMock) -> None:
    """Two acquirers racing before any browser exists share one launch."""
    sessions = SessionManager()
    first, second = await asyncio.gather(
        sessions.acquire_browser(),
        sessions.acquire_browser(),
    )

    assert first is second
    assert playwright_driver.chromium.launch.await_count == 1
    assert sessions.launch_count == 1


@pytest.mark.asyncio
async def test_disconnected_browser_replaced(playwright_driver: MagicMock) -> None:
    sessions = SessionManager()
    first = await sessions.acquire_browser()
    first.is_connected.return_value = False
    assert sessions.is_alive is False

    second = await sessions.acquire_browser()

    assert second is not first
    assert playwright_driver.chromium.launch.await_count == 2
    assert sessions.is_alive is True


@pytest.mark.asyncio
async def test_launch_failure_raises(playwright_driver: MagicMock) -> None:
    playwright_driver.chromium.launch = AsyncMock(side_effect=RuntimeError("Executable doesn't exist"))
    sessions = SessionManager()

    with pytest.raises(BrowserLaunchFailure) as exc_info:
        await sessions.acquire_browser()

    assert isinstance(exc_info.value.__cause__, RuntimeError)
    assert sessions.is_alive is False
    assert sessions.launch_count == 0


@pytest.mark.asyncio
async def test_acquire_after_failure_tries_again(playwright_driver: MagicMock) -> None:
    """A failed launch is not cached; the next acquisition launches anew."""
    browser = _browser()
    playwright_driver.chromium.launch = AsyncMock(side_effect=[RuntimeError("boom"), browser])
    sessions = SessionManager()

    with pytest.raises(BrowserLaunchFailure):
        await sessions.acquire_browser()
    assert await sessions.acquire_browser() is browser


@pytest.mark.asyncio
async def test_shutdown_closes_browser_and_driver(playwright_driver: MagicMock) -> None:
    sessions = SessionManager()
    browser = await sessions.acquire_browser()

    await sessions.shutdown()

    browser.close.assert_awaited_once()
    playwright_driver.stop.assert_awaited_once()
    assert sessions.is_alive is False


@pytest.mark.asyncio
async def test_shutdown_without_browser_is_noop() -> None:
    sessions = SessionManager()
    await sessions.shutdown()
    assert sessions.is_alive is False

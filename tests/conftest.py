"""
Balance Scout - Shared pytest Fixtures & Configuration

Provides common fixtures for all test modules:
- Simulated balance portal (page / context / browser doubles)
- Mock session manager
- Instant sleeps for flow tests
- Async test support via pytest-asyncio
"""

from __future__ import annotations

from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from balance_scout.scraper import ScrapeRequest


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

pytest_plugins = ("pytest_asyncio",)

SUCCESS_RESULT_TEXT = "Votre carte cadeau\nCrédit restant : 45.00€\nDate de validité : 31/12/2024\n"


# ---------------------------------------------------------------------------
# Simulated Portal
# ---------------------------------------------------------------------------


def make_portal_page(
    result_text: str | None = SUCCESS_RESULT_TEXT,
    wait_side_effect: Callable[..., Any] | None = None,
    evaluate_side_effect: Callable[..., Any] | None = None,
) -> MagicMock:
    """
    Build a Playwright Page double that walks through the portal form.

    Args:
        result_text: innerText of the result container, None for no container.
        wait_side_effect: Optional side effect for page.wait_for_selector.
        evaluate_side_effect: Optional side effect for page.evaluate.
    """
    page = MagicMock()
    page.goto = AsyncMock()
    page.route = AsyncMock()
    page.click = AsyncMock()
    page.eval_on_selector = AsyncMock()
    page.wait_for_selector = AsyncMock(side_effect=wait_side_effect)
    page.evaluate = AsyncMock(return_value=True, side_effect=evaluate_side_effect)

    field = MagicMock()
    field.press_sequentially = AsyncMock()
    page.locator = MagicMock(return_value=field)

    if result_text is None:
        page.query_selector = AsyncMock(return_value=None)
    else:
        container = MagicMock()
        container.inner_text = AsyncMock(return_value=result_text)
        page.query_selector = AsyncMock(return_value=container)

    return page


def make_browser(page: MagicMock) -> MagicMock:
    """Browser double whose contexts all hand out the given page."""
    context = MagicMock()
    context.new_page = AsyncMock(return_value=page)
    context.close = AsyncMock()

    browser = MagicMock()
    browser.new_context = AsyncMock(return_value=context)
    browser.is_connected = MagicMock(return_value=True)
    browser.close = AsyncMock()
    return browser


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def portal_page() -> MagicMock:
    return make_portal_page()


@pytest.fixture
def page_factory() -> Callable[..., MagicMock]:
    return make_portal_page


@pytest.fixture
def browser_factory() -> Callable[[MagicMock], MagicMock]:
    return make_browser


@pytest.fixture
def mock_sessions() -> Callable[[MagicMock], MagicMock]:
    """Factory for a SessionManager double that always returns one browser."""

    def _build(browser: MagicMock) -> MagicMock:
        sessions = MagicMock()
        sessions.acquire_browser = AsyncMock(return_value=browser)
        return sessions

    return _build


@pytest.fixture
def no_sleep():
    """Make every asyncio.sleep return immediately; yields the mock."""
    with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.fixture
def balance_request() -> ScrapeRequest:
    return ScrapeRequest(cardNumber="50320004304585671840371", pin="3301")

"""Balance Scout exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from balance_scout.scraper import FlowState


class BalanceScoutError(Exception):
    """Base exception for all Balance Scout errors."""


class BrowserLaunchFailure(BalanceScoutError):
    """Raised when the shared Chromium process cannot be started."""


class ElementNotFoundError(BalanceScoutError):
    """Raised when an expected element is missing from the page.

    Attributes:
        selector: CSS selector that matched nothing.
    """

    def __init__(self, selector: str) -> None:
        self.selector = selector
        super().__init__(f"Element not found: {selector}")


class NavigationTimeoutError(BalanceScoutError):
    """Raised when a navigation or element wait exceeds its time bound.

    Attributes:
        target: URL or selector that was being waited on.
        timeout_ms: The bound that elapsed.
    """

    def __init__(self, target: str, timeout_ms: int) -> None:
        self.target = target
        self.timeout_ms = timeout_ms
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {target}")


class StepFailure(BalanceScoutError):
    """Raised when one step of the balance flow cannot be completed.

    Aborts the current whole-flow attempt.

    Attributes:
        state: Last state the flow reached before the failure.
        cause: The underlying exception.
    """

    def __init__(self, state: FlowState, cause: BaseException) -> None:
        self.state = state
        self.cause = cause
        super().__init__(f"Step after '{state.value}' failed: {type(cause).__name__}: {cause}")

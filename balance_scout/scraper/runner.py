"""
Balance Scout - Navigation Orchestrator

Drives one balance check through the portal form:

1. Navigate to the gift card page
2. Open the card-detail modal
3. Enter the card number
4. Submit the card number
5. Enter the PIN (then think-pause)
6. Submit the PIN
7. Wait for the result container and extract it

Retries are whole-flow: a failed attempt closes its page context and the
next attempt starts again from navigation, because the portal's form state
cannot be resumed after a partial failure. Click/submit actions inside an
attempt are additionally guarded by the finer step retry policy.
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable

import structlog
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from balance_scout.config import settings
from balance_scout.exceptions import (
    BrowserLaunchFailure,
    ElementNotFoundError,
    NavigationTimeoutError,
    StepFailure,
)
from balance_scout.scraper import CardResult, FlowState, ScrapeRequest
from balance_scout.scraper.anti_detect import HumanInputEmulator
from balance_scout.scraper.extractor import extract_card_result
from balance_scout.scraper.network_intercept import RequestFilter
from balance_scout.scraper.retry import RetryPolicy, flow_retry_policy, step_retry_policy
from balance_scout.scraper.session import SessionManager

logger = structlog.get_logger(__name__)

_HOVER_SCRIPT = """
(selector) => {
    const el = document.querySelector(selector);
    if (!el) return false;
    el.dispatchEvent(new MouseEvent('mouseover', { bubbles: true }));
    return true;
}
"""

_CLICK_SCRIPT = """
(selector) => {
    const el = document.querySelector(selector);
    if (!el) return false;
    el.click();
    return true;
}
"""

_UNLOCK_SCRIPT = "el => el.removeAttribute('readonly')"


class NavigationOrchestrator:
    """
    Runs the balance-check flow with whole-flow retry.

    Usage:
        orchestrator = NavigationOrchestrator(SessionManager())
        result = await orchestrator.check_card_balance(request)
    """

    def __init__(
        self,
        sessions: SessionManager,
        human_input: HumanInputEmulator | None = None,
        request_filter: RequestFilter | None = None,
        step_retry: RetryPolicy | None = None,
        flow_retry: RetryPolicy | None = None,
    ) -> None:
        self.sessions = sessions
        self.human_input = human_input or HumanInputEmulator()
        self.request_filter = request_filter or RequestFilter()
        self.step_retry = step_retry or step_retry_policy()
        self.flow_retry = flow_retry or flow_retry_policy()

    async def check_card_balance(self, request: ScrapeRequest) -> CardResult | None:
        """
        Check a card balance, retrying the whole flow on failure.

        Args:
            request: Validated balance-check request.

        Returns:
            CardResult once the result page is reached (fields may be None when
            the labels are missing), None if every attempt failed. Never raises.
        """
        try:
            return await self._run_attempts(request)
        except Exception as e:
            logger.error(
                "balance_check_fatal_error",
                card=request.masked_card_number,
                error=str(e),
                error_type=type(e).__name__,
                source="runner",
            )
            return None

    async def _run_attempts(self, request: ScrapeRequest) -> CardResult | None:
        for attempt in range(1, request.max_retries + 1):
            self._log_step(request, "balance_check_attempt_started", attempt=attempt)

            try:
                result = await self._attempt(request)
            except (StepFailure, BrowserLaunchFailure) as e:
                failure: dict[str, Any] = {
                    "card": request.masked_card_number,
                    "attempt": attempt,
                    "max_attempts": request.max_retries,
                    "error_type": type(getattr(e, "cause", e)).__name__,
                    "source": "runner",
                }
                if isinstance(e, StepFailure):
                    failure["state"] = e.state.value
                if request.debug:
                    failure["error"] = str(e)
                logger.warning("balance_check_attempt_failed", **failure)

                if attempt < request.max_retries:
                    logger.info(
                        "balance_check_backoff",
                        card=request.masked_card_number,
                        attempt=attempt,
                        wait_seconds=self.flow_retry.delay_for(attempt),
                        source="runner",
                    )
                    await self.flow_retry.wait(attempt)
                continue

            logger.info(
                "balance_check_success",
                card=request.masked_card_number,
                attempt=attempt,
                balance=result.balance,
                validity_date=result.validity_date,
                source="runner",
            )
            return result

        logger.warning(
            "balance_check_exhausted",
            card=request.masked_card_number,
            attempts=request.max_retries,
            source="runner",
        )
        return None

    async def _attempt(self, request: ScrapeRequest) -> CardResult:
        """One pass through the flow on a fresh page context."""
        browser = await self.sessions.acquire_browser(headless=request.headless)

        state = FlowState.INIT
        context = None
        try:
            context = await browser.new_context(**self.human_input.context_options())
            page = await context.new_page()
            page.set_default_timeout(request.timeout_ms)
            page.set_default_navigation_timeout(request.timeout_ms)
            await self.request_filter.install(page)

            await self._goto(page, settings.TARGET_URL, request.timeout_ms)
            state = FlowState.NAVIGATED
            self._log_step(request, "balance_check_navigated", url=settings.TARGET_URL)

            await self.step_retry.retry(
                lambda: self._click_element(page, settings.MODAL_TRIGGER_SELECTOR, request.timeout_ms),
                request.max_retries,
            )
            state = FlowState.MODAL_OPENED
            self._log_step(request, "balance_check_modal_opened")

            await self._wait_visible(page, settings.CARD_NUMBER_INPUT_SELECTOR, request.timeout_ms)
            await page.eval_on_selector(settings.CARD_NUMBER_INPUT_SELECTOR, _UNLOCK_SCRIPT)
            await self.human_input.type_human_like(
                page, settings.CARD_NUMBER_INPUT_SELECTOR, request.card_number
            )
            state = FlowState.CARD_NUMBER_ENTERED
            self._log_step(request, "balance_check_card_number_entered")

            await self.step_retry.retry(
                self._submitter(page, settings.CARD_NUMBER_SUBMIT_SELECTOR),
                request.max_retries,
            )
            state = FlowState.CARD_NUMBER_SUBMITTED
            self._log_step(request, "balance_check_card_number_submitted")

            await self._wait_visible(page, settings.PIN_INPUT_SELECTOR, request.timeout_ms)
            await self.human_input.type_human_like(page, settings.PIN_INPUT_SELECTOR, request.pin)
            await self.human_input.think_pause()
            state = FlowState.PIN_ENTERED
            self._log_step(request, "balance_check_pin_entered")

            await self.step_retry.retry(
                self._submitter(page, settings.PIN_SUBMIT_SELECTOR),
                request.max_retries,
            )
            state = FlowState.PIN_SUBMITTED
            self._log_step(request, "balance_check_pin_submitted")

            await self._wait_visible(page, settings.RESULT_CONTAINER_SELECTOR, request.timeout_ms)
            result = await extract_card_result(page)
            if result is None:
                raise ElementNotFoundError(settings.RESULT_CONTAINER_SELECTOR)
            state = FlowState.RESULT_READY
            self._log_step(request, "balance_check_result_ready", has_data=result.has_data)
            return result

        except Exception as e:
            raise StepFailure(state, e) from e

        finally:
            if context is not None:
                await self._close_context(context)

    # -----------------------------------------------------------------------
    # Page helpers
    # -----------------------------------------------------------------------

    async def _goto(self, page: Any, url: str, timeout_ms: int) -> None:
        try:
            await page.goto(url, timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(url, timeout_ms) from e

    async def _wait_visible(self, page: Any, selector: str, timeout_ms: int) -> None:
        try:
            await page.wait_for_selector(selector, state="visible", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationTimeoutError(selector, timeout_ms) from e

    async def _click_element(self, page: Any, selector: str, timeout_ms: int) -> None:
        """Hover, settle, click, then linger like a person would."""
        await self._wait_visible(page, selector, timeout_ms)
        if not await page.evaluate(_HOVER_SCRIPT, selector):
            raise ElementNotFoundError(selector)
        await asyncio.sleep(settings.HOVER_SETTLE_MS / 1000)
        await page.click(selector)
        await self.human_input.random_delay(
            settings.POST_CLICK_DELAY_MIN_MS, settings.POST_CLICK_DELAY_MAX_MS
        )

    def _submitter(self, page: Any, selector: str) -> Callable[[], Awaitable[None]]:
        """Build a step that clicks a submit input from inside the page."""

        async def submit() -> None:
            if not await page.evaluate(_CLICK_SCRIPT, selector):
                raise ElementNotFoundError(selector)

        return submit

    async def _close_context(self, context: Any) -> None:
        try:
            await context.close()
        except Exception as e:
            logger.warning(
                "page_context_close_failed",
                error=str(e),
                error_type=type(e).__name__,
                source="runner",
            )

    def _log_step(self, request: ScrapeRequest, event: str, **kwargs: Any) -> None:
        """Step progress is INFO in debug mode, DEBUG otherwise."""
        log = logger.info if request.debug else logger.debug
        log(event, card=request.masked_card_number, source="runner", **kwargs)

"""
Balance Scout - Command Line Entrypoint

Configures structlog, runs a single balance check and prints the result as
JSON ({"balance": ..., "validityDate": ...} or null).

Run via:
    python -m balance_scout.main --card-number 50320004304585671840371 --pin 3301
    balance-scout --card-number 50320004304585671840371 --pin 3301 --headed --debug

Exit codes: 0 result found, 1 no result, 2 invalid input.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

import structlog
from pydantic import ValidationError

from balance_scout.config import settings
from balance_scout.scraper import CardResult, ScrapeRequest
from balance_scout.scraper.runner import NavigationOrchestrator
from balance_scout.scraper.session import SessionManager


# ---------------------------------------------------------------------------
# Structlog Configuration
# ---------------------------------------------------------------------------


def _configure_logging(log_level: str = "INFO") -> None:
    """
    Set up structured logging with JSON output on stderr.

    stdout is reserved for the JSON result.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    level = getattr(logging, log_level.upper())

    # Configure stdlib logging first (for third-party libraries)
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Arguments
# ---------------------------------------------------------------------------


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Check the remaining balance of a gift card.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  balance-scout --card-number 50320004304585671840371 --pin 3301
  balance-scout --card-number 50320004304585671840371 --pin 3301 --headed --debug
  balance-scout --card-number 50320004304585671840371 --pin 3301 --timeout-ms 60000 --max-retries 5
""",
    )
    parser.add_argument("--card-number", type=str, required=True, help="Gift card number (10-30 characters).")
    parser.add_argument("--pin", type=str, required=True, help="Card PIN (4-10 characters).")
    parser.add_argument(
        "--headed",
        action="store_true",
        help="Show the browser window instead of running headless.",
    )
    parser.add_argument("--debug", action="store_true", help="Log every step of the flow.")
    parser.add_argument(
        "--timeout-ms",
        type=int,
        default=settings.DEFAULT_TIMEOUT_MS,
        help=f"Per-wait time bound in milliseconds (default: {settings.DEFAULT_TIMEOUT_MS}).",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=settings.DEFAULT_MAX_RETRIES,
        help=f"Whole-flow attempts before giving up (default: {settings.DEFAULT_MAX_RETRIES}).",
    )
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> ScrapeRequest:
    """Map CLI arguments onto a validated ScrapeRequest."""
    return ScrapeRequest(
        card_number=args.card_number,
        pin=args.pin,
        headless=not args.headed,
        debug=args.debug,
        timeout_ms=args.timeout_ms,
        max_retries=args.max_retries,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


async def run(request: ScrapeRequest) -> CardResult | None:
    """
    Run one balance check and release the shared browser afterwards.

    Args:
        request: Validated balance-check request.

    Returns:
        The CardResult, or None when no attempt succeeded.
    """
    logger = structlog.get_logger(__name__)
    sessions = SessionManager()
    orchestrator = NavigationOrchestrator(sessions)

    try:
        return await orchestrator.check_card_balance(request)
    finally:
        try:
            await sessions.shutdown()
        except Exception as e:
            logger.error(
                "browser_shutdown_failed",
                error=str(e),
                error_type=type(e).__name__,
            )


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    _configure_logging(log_level="DEBUG" if args.debug else settings.LOG_LEVEL)
    logger = structlog.get_logger(__name__)

    try:
        request = build_request(args)
    except ValidationError as e:
        logger.error(
            "balance_check_invalid_request",
            errors=e.errors(include_url=False, include_context=False, include_input=False),
        )
        return 2

    logger.info(
        "balance_check_begin",
        card=request.masked_card_number,
        headless=request.headless,
        max_retries=request.max_retries,
    )

    result = asyncio.run(run(request))
    print(json.dumps(result.model_dump(by_alias=True) if result is not None else None, ensure_ascii=False))
    return 0 if result is not None else 1


# ---------------------------------------------------------------------------
# CLI Entry
# ---------------------------------------------------------------------------


if __name__ == "__main__":
    sys.exit(main())

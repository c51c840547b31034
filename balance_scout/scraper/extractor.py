"""
Balance Scout - Result Extraction

Reads the rendered text of the result container and parses the balance and
validity-date lines out of it. Parsing works on plain text so it can be
tested against fixture strings without a browser.
"""

from __future__ import annotations

import re
from typing import Any

import structlog

from balance_scout.config import settings
from balance_scout.scraper import CardResult

logger = structlog.get_logger(__name__)


async def extract_card_result(page: Any) -> CardResult | None:
    """
    Read the result container of a Playwright page.

    No retries and no page mutation: the page is read as it is at call time.

    Args:
        page: Playwright Page object.

    Returns:
        None if the result container is absent, otherwise the parsed CardResult
        (whose fields may both be None).
    """
    container = await page.query_selector(settings.RESULT_CONTAINER_SELECTOR)
    if container is None:
        logger.warning(
            "card_result_container_missing",
            selector=settings.RESULT_CONTAINER_SELECTOR,
            source="extractor",
        )
        return None

    text = await container.inner_text()
    return parse_result_text(text)


def parse_result_text(text: str) -> CardResult:
    """
    Parse result-container text into a CardResult.

    A line containing a label marker yields the rest of the line after the
    marker, without the label colon and surrounding whitespace. Later lines
    overwrite earlier ones.

    Args:
        text: innerText of the result container.

    Returns:
        CardResult. Fields whose marker is absent stay None.
    """
    balance: str | None = None
    validity_date: str | None = None

    for line in text.splitlines():
        if settings.BALANCE_MARKER in line:
            balance = _value_after(line, settings.BALANCE_MARKER)
        elif settings.VALIDITY_MARKER in line:
            validity_date = _value_after(line, settings.VALIDITY_MARKER)

    result = CardResult(balance=balance, validity_date=validity_date)

    if not result.has_data:
        logger.warning(
            "card_result_markers_missing",
            line_count=len(text.splitlines()),
            source="extractor",
        )

    return result


def _value_after(line: str, marker: str) -> str:
    """'Crédit restant : 45.00€' -> '45.00€'"""
    remainder = line.split(marker, 1)[1]
    return re.sub(r"^\s*:", "", remainder).strip()

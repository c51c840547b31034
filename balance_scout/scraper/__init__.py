"""Balance Scout - Scraper Layer models"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from balance_scout.config import settings


class FlowState(str, Enum):
    """Progress markers of one balance-check attempt, in order."""
    INIT = "init"
    NAVIGATED = "navigated"
    MODAL_OPENED = "modal_opened"
    CARD_NUMBER_ENTERED = "card_number_entered"
    CARD_NUMBER_SUBMITTED = "card_number_submitted"
    PIN_ENTERED = "pin_entered"
    PIN_SUBMITTED = "pin_submitted"
    RESULT_READY = "result_ready"


class ScrapeRequest(BaseModel):
    """One balance-check request. Accepts camelCase or snake_case keys."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    card_number: str = Field(..., min_length=10, max_length=30)
    pin: str = Field(..., min_length=4, max_length=10)
    headless: bool = True
    debug: bool = False
    timeout_ms: int = Field(default=settings.DEFAULT_TIMEOUT_MS, gt=0)
    max_retries: int = Field(default=settings.DEFAULT_MAX_RETRIES, ge=1)

    @property
    def masked_card_number(self) -> str:
        """Card number with everything but the last four digits hidden."""
        return "*" * (len(self.card_number) - 4) + self.card_number[-4:]


class CardResult(BaseModel):
    """Balance data read from the result container.

    None fields mean the label was not found in the result text,
    not that the check failed.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    balance: str | None = None
    validity_date: str | None = None

    @property
    def has_data(self) -> bool:
        return self.balance is not None or self.validity_date is not None

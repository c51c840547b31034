"""
Balance Scout - Configuration & Constants

Every selector, label marker, timing bound and retry base lives here.
The target-site values are an external contract: they must match the live
markup of the gift card portal byte for byte.

Usage:
    from balance_scout.config import settings
"""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Central configuration for Balance Scout.

    Loads from environment variables with fallback defaults.
    """

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # -----------------------------------------------------------------------
    # Logging
    # -----------------------------------------------------------------------
    LOG_LEVEL: str = "INFO"

    # -----------------------------------------------------------------------
    # Target Site Contract
    # -----------------------------------------------------------------------
    TARGET_URL: str = "https://www.cartecadeau.carrefour.fr/page/30/mes-cartes-cadeaux-carrefour"
    MODAL_TRIGGER_SELECTOR: str = "a.modal-carte-detail"
    CARD_NUMBER_INPUT_SELECTOR: str = 'input[name="data[pan_carte]"]'
    CARD_NUMBER_SUBMIT_SELECTOR: str = 'input[name="submitpan"]'
    PIN_INPUT_SELECTOR: str = 'input[name="data[pin_carte]"]'
    PIN_SUBMIT_SELECTOR: str = 'input[name="submitcaptcha"]'
    RESULT_CONTAINER_SELECTOR: str = ".bkDetailResponse"
    BALANCE_MARKER: str = "Crédit restant"
    VALIDITY_MARKER: str = "Date de validité"

    # -----------------------------------------------------------------------
    # Browser Launch
    # -----------------------------------------------------------------------
    PROXY_URL: str = ""
    BROWSER_LAUNCH_ARGS: list[str] = [
        "--disable-gpu",
        "--no-sandbox",
        "--disable-extensions",
        "--disable-setuid-sandbox",
        "--disable-background-networking",
        "--disable-default-apps",
        "--disable-sync",
        "--disable-translate",
        "--hide-scrollbars",
        "--mute-audio",
        "--no-default-browser-check",
        "--no-first-run",
        "--no-zygote",
    ]

    # -----------------------------------------------------------------------
    # Page Fingerprint
    # -----------------------------------------------------------------------
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/121.0.0.0 Safari/537.36"
    )
    VIEWPORT_WIDTH: int = 1366
    VIEWPORT_HEIGHT: int = 768
    LOCALE: str = "fr-FR"

    # -----------------------------------------------------------------------
    # Request Filtering
    # -----------------------------------------------------------------------
    BLOCKED_RESOURCE_TYPES: list[str] = ["image", "font", "media"]
    BLOCKED_DOMAINS: list[str] = [
        "google-analytics.com",
        "googletagmanager.com",
        "doubleclick.net",
        "facebook.net",
        "hotjar.com",
    ]

    # -----------------------------------------------------------------------
    # Human Input Emulation (milliseconds)
    # -----------------------------------------------------------------------
    KEYSTROKE_DELAY_MIN_MS: int = 30
    KEYSTROKE_DELAY_MAX_MS: int = 130
    KEYSTROKE_PAUSE_PROBABILITY: float = 0.2
    KEYSTROKE_PAUSE_MIN_MS: int = 100
    KEYSTROKE_PAUSE_MAX_MS: int = 400
    THINK_PAUSE_MIN_MS: int = 600
    THINK_PAUSE_MAX_MS: int = 1300
    HOVER_SETTLE_MS: int = 50
    POST_CLICK_DELAY_MIN_MS: int = 50
    POST_CLICK_DELAY_MAX_MS: int = 200

    # -----------------------------------------------------------------------
    # Retry Policies
    # Step retry: 0.2s * 2^attempt between click/submit attempts
    # Flow retry: 1s * 2^attempt between whole-flow attempts
    # -----------------------------------------------------------------------
    STEP_RETRY_BASE_DELAY_SECONDS: float = 0.2
    FLOW_RETRY_BASE_DELAY_SECONDS: float = 1.0

    # -----------------------------------------------------------------------
    # Request Defaults
    # -----------------------------------------------------------------------
    DEFAULT_TIMEOUT_MS: int = 30000
    DEFAULT_MAX_RETRIES: int = 3


# Singleton instance
settings = Settings()

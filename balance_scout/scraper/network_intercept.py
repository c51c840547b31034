"""
Balance Scout - Network Interception

Filters the sub-resource requests a page may perform via page.route().
Images, fonts, media and analytics/tracking hosts are aborted to cut load
time and shrink the network fingerprint; everything else continues.
"""

from __future__ import annotations

from typing import Any, Iterable
from urllib.parse import urlparse

import structlog

from balance_scout.config import settings

logger = structlog.get_logger(__name__)


class RequestFilter:
    """
    Allow/deny decision for outgoing page requests.

    Usage:
        request_filter = RequestFilter()
        await request_filter.install(page)
    """

    def __init__(
        self,
        blocked_resource_types: Iterable[str] | None = None,
        blocked_domains: Iterable[str] | None = None,
    ) -> None:
        self.blocked_resource_types = frozenset(
            settings.BLOCKED_RESOURCE_TYPES if blocked_resource_types is None else blocked_resource_types
        )
        self.blocked_domains = tuple(
            d.lower() for d in (settings.BLOCKED_DOMAINS if blocked_domains is None else blocked_domains)
        )
        self.blocked_count = 0

    def should_allow(self, request: Any) -> bool:
        """
        Decide whether a request may go out.

        Args:
            request: Playwright Request (needs .resource_type and .url).

        Returns:
            False for blocked resource types and deny-listed hosts, True otherwise.
        """
        if request.resource_type in self.blocked_resource_types:
            return False
        return not self._is_blocked_host(request.url)

    def _is_blocked_host(self, url: str) -> bool:
        """Match the URL host against the deny-list, subdomains included."""
        host = (urlparse(url).hostname or "").lower()
        if not host:
            return False
        return any(host == domain or host.endswith("." + domain) for domain in self.blocked_domains)

    async def install(self, page: Any) -> None:
        """
        Register the filter on every request the page makes.

        Args:
            page: Playwright Page object.
        """

        async def handle_route(route: Any) -> None:
            """Abort denied requests, continue the rest."""
            if self.should_allow(route.request):
                await route.continue_()
                return
            self.blocked_count += 1
            await route.abort()

        await page.route("**/*", handle_route)

        logger.debug(
            "request_filter_installed",
            blocked_resource_types=sorted(self.blocked_resource_types),
            blocked_domains=list(self.blocked_domains),
            source="network_intercept",
        )

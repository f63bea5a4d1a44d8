"""Browser-like HTTP header generation for a rotated identity."""

import logging
import random
from typing import Dict, Optional

from product_scraper.ingest.base import Identity
from product_scraper.ingest.user_agent_pool import parse_user_agent

logger = logging.getLogger(__name__)

ACCEPT_HTML = (
    "text/html,application/xhtml+xml,application/xml;q=0.9,"
    "image/avif,image/webp,image/apng,*/*;q=0.8"
)
ACCEPT_HTML_SAFARI = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"

PLATFORM_HINTS = {
    "windows": '"Windows"',
    "mac": '"macOS"',
    "linux": '"Linux"',
    "android": '"Android"',
}


class HeaderBuilder:
    """
    Builds realistic request headers for an identity.

    Chromium-based identities also send client hints that agree with
    their user agent's version and platform.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random
        self.languages = [
            "en-US,en;q=0.9",
            "en-US,en;q=0.9,fr;q=0.8,es;q=0.7",
            "en-GB,en;q=0.9",
        ]

    def build_headers(self, identity: Identity, url: str = "") -> Dict[str, str]:
        """
        Build request headers.

        Args:
            identity: Identity whose user agent the headers must match
            url: Target URL

        Returns:
            Dict of HTTP headers
        """
        info = parse_user_agent(identity.user_agent)

        headers = {
            "User-Agent": identity.user_agent,
            "Accept": ACCEPT_HTML_SAFARI if info.browser == "safari" else ACCEPT_HTML,
            "Accept-Language": self._rng.choice(self.languages),
            "Accept-Encoding": "gzip, deflate, br",
            "DNT": "1",
            "Connection": "keep-alive",
            "Upgrade-Insecure-Requests": "1",
            "Sec-Fetch-Dest": "document",
            "Sec-Fetch-Mode": "navigate",
            "Sec-Fetch-Site": "none",
            "Sec-Fetch-User": "?1",
            "Cache-Control": "max-age=0",
        }

        if info.browser in ("chrome", "edge") and info.platform != "ios":
            headers.update({
                "sec-ch-ua": self._get_chromium_ua_hint(info.browser, info.version),
                "sec-ch-ua-mobile": "?1" if info.mobile else "?0",
                "sec-ch-ua-platform": PLATFORM_HINTS.get(info.platform, '"Windows"'),
            })

        return headers

    @staticmethod
    def _get_chromium_ua_hint(browser: str, version: str) -> str:
        brand = '"Microsoft Edge"' if browser == "edge" else '"Google Chrome"'
        version = version or "120"
        return f'"Chromium";v="{version}", {brand};v="{version}", "Not_A Brand";v="99"'


# Global header builder instance
header_builder = HeaderBuilder()

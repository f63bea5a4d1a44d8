"""Curated user agent pool covering major desktop and mobile browsers.

Sites fingerprint repeated identical user agents, so every fetch attempt
draws from a pool spanning Chrome, Firefox, Safari and Edge on desktop
plus Chrome on Android and Safari on iOS.
"""

import logging
import random
import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from product_scraper.config import settings

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r'(?:Edg|Firefox|Version|Chrome|CriOS)/(\d+)')


@dataclass(frozen=True)
class UserAgentInfo:
    """User agent with metadata."""
    user_agent: str
    browser: str  # 'chrome', 'firefox', 'safari', 'edge'
    version: str
    platform: str  # 'windows', 'mac', 'linux', 'android', 'ios'
    mobile: bool = False


def _desktop_agents() -> List[str]:
    chrome_windows = [
        f"Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version}.0.0.0 Safari/537.36"
        for version in range(118, 122)
    ]
    chrome_macos = [
        f"Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version}.0.0.0 Safari/537.36"
        for version in range(119, 122)
    ]
    chrome_linux = [
        f"Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version}.0.0.0 Safari/537.36"
        for version in range(119, 121)
    ]
    firefox_windows = [
        f"Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:{version}.0) Gecko/20100101 Firefox/{version}.0"
        for version in range(119, 122)
    ]
    firefox_macos = [
        f"Mozilla/5.0 (Macintosh; Intel Mac OS X 10.15; rv:{version}.0) Gecko/20100101 Firefox/{version}.0"
        for version in range(120, 122)
    ]
    safari_macos = [
        f"Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/{version} Safari/605.1.15"
        for version in ("17.0", "17.1")
    ]
    edge_windows = [
        f"Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version}.0.0.0 Safari/537.36 Edg/{version}.0.0.0"
        for version in range(119, 121)
    ]
    return (
        chrome_windows + chrome_macos + chrome_linux +
        firefox_windows + firefox_macos +
        safari_macos + edge_windows
    )


def _mobile_agents() -> List[str]:
    chrome_android = [
        f"Mozilla/5.0 (Linux; Android 14; Pixel 8) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version}.0.0.0 Mobile Safari/537.36"
        for version in range(119, 121)
    ] + [
        "Mozilla/5.0 (Linux; Android 13; SM-S918B) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Mobile Safari/537.36",
    ]
    safari_ios = [
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
        "Mozilla/5.0 (iPad; CPU OS 17_1 like Mac OS X) AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1",
    ]
    return chrome_android + safari_ios


DEFAULT_USER_AGENTS: tuple[str, ...] = tuple(_desktop_agents() + _mobile_agents())


def parse_user_agent(ua_string: str) -> UserAgentInfo:
    """Classify a user agent string by browser, platform and version."""
    if "Edg/" in ua_string:
        browser = "edge"
    elif "Firefox/" in ua_string:
        browser = "firefox"
    elif "Chrome/" in ua_string or "CriOS/" in ua_string:
        browser = "chrome"
    elif "Safari/" in ua_string:
        browser = "safari"
    else:
        browser = "chrome"  # Default

    if "Android" in ua_string:
        platform = "android"
    elif "iPhone" in ua_string or "iPad" in ua_string:
        platform = "ios"
    elif "Windows" in ua_string:
        platform = "windows"
    elif "Macintosh" in ua_string:
        platform = "mac"
    elif "Linux" in ua_string:
        platform = "linux"
    else:
        platform = "windows"

    version_match = _VERSION_RE.search(ua_string)
    version = version_match.group(1) if version_match else ""

    return UserAgentInfo(
        user_agent=ua_string,
        browser=browser,
        version=version,
        platform=platform,
        mobile="Mobile" in ua_string,
    )


class UserAgentPool:
    """
    Fixed pool of realistic user agents.

    Draws are memoryless: each call picks uniformly from the whole pool
    with no record of earlier picks.
    """

    def __init__(
        self,
        user_agents: Optional[Iterable[str]] = None,
        additional: Optional[Iterable[str]] = None,
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize user agent pool.

        Args:
            user_agents: Base pool (defaults to DEFAULT_USER_AGENTS)
            additional: Extra user agents appended to the base pool
            rng: Random source (defaults to the module-level generator)
        """
        base = list(user_agents) if user_agents is not None else list(DEFAULT_USER_AGENTS)
        extra = list(additional) if additional is not None else list(settings.additional_user_agents)

        agents: List[str] = []
        for ua in base + extra:
            ua = ua.strip()
            if ua and ua not in agents:
                agents.append(ua)

        if not agents:
            raise ValueError("User agent pool cannot be empty")

        self._user_agents: List[UserAgentInfo] = [parse_user_agent(ua) for ua in agents]
        self._rng = rng or random

        logger.debug(f"User agent pool initialised with {len(self._user_agents)} agents")

    def __len__(self) -> int:
        return len(self._user_agents)

    @property
    def agents(self) -> List[str]:
        return [ua.user_agent for ua in self._user_agents]

    def get_random(self) -> str:
        """Get a user agent drawn uniformly from the pool."""
        return self._rng.choice(self._user_agents).user_agent

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Get browser and platform distribution of the pool."""
        browsers: Dict[str, int] = {}
        platforms: Dict[str, int] = {}
        for ua in self._user_agents:
            browsers[ua.browser] = browsers.get(ua.browser, 0) + 1
            platforms[ua.platform] = platforms.get(ua.platform, 0) + 1
        return {"browsers": browsers, "platforms": platforms}

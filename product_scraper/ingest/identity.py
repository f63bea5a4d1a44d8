"""Per-attempt outbound identity rotation."""

import logging
import random
from typing import Optional

from product_scraper.ingest.base import Identity
from product_scraper.ingest.proxy_manager import ProxyPool, proxy_pool
from product_scraper.ingest.user_agent_pool import UserAgentPool

logger = logging.getLogger(__name__)


class IdentityRotator:
    """
    Supplies a randomized identity (user agent + optional proxy).

    Each call is an independent uniform draw; proxies are treated as
    interchangeable and the rotator keeps no state between calls.
    """

    def __init__(
        self,
        user_agents: Optional[UserAgentPool] = None,
        proxies: Optional[ProxyPool] = None,
        rng: Optional[random.Random] = None,
    ):
        self._rng = rng or random
        self.user_agents = user_agents or UserAgentPool(rng=rng)
        self.proxies = proxies if proxies is not None else proxy_pool

        stats = self.user_agents.get_stats()
        logger.debug(
            f"Identity rotator ready: browsers={stats['browsers']}, "
            f"platforms={stats['platforms']}, proxies={self.proxies.proxy_count}"
        )

    def next_identity(self) -> Identity:
        """Draw a fresh identity for one fetch attempt."""
        user_agent = self.user_agents.get_random()

        snapshot = self.proxies.snapshot()
        proxy = self._rng.choice(snapshot) if snapshot else None

        return Identity(user_agent=user_agent, proxy=proxy)

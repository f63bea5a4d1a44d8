"""Process-wide proxy snapshot backed by the external proxy-pool service."""

import asyncio
import logging
import time
from typing import Iterable, Optional
from urllib.parse import urlparse

import httpx

from product_scraper.config import settings

logger = logging.getLogger(__name__)

SUPPORTED_PROXY_SCHEMES = ("http", "https", "socks4", "socks5")

# Sample entries shipped with the proxy service and config templates
PLACEHOLDER_MARKERS = ("example.com", "your-proxy", "localhost:8080")


def is_valid_proxy(proxy: str) -> bool:
    """Check that a proxy URI has a supported scheme, a host and a port."""
    if not isinstance(proxy, str) or not proxy or any(c.isspace() for c in proxy):
        return False
    try:
        parsed = urlparse(proxy)
        port = parsed.port
    except ValueError:
        return False
    return parsed.scheme in SUPPORTED_PROXY_SCHEMES and bool(parsed.hostname) and port is not None


def filter_proxies(proxies: Iterable[str]) -> list[str]:
    """Drop placeholder and malformed proxies, de-duplicating in order."""
    valid: list[str] = []
    for proxy in proxies:
        if not isinstance(proxy, str):
            logger.warning(f"Skipping non-string proxy entry: {proxy!r}")
            continue
        proxy = proxy.strip()
        if any(marker in proxy for marker in PLACEHOLDER_MARKERS):
            continue
        if not is_valid_proxy(proxy):
            logger.warning(f"Invalid proxy format, skipping: {proxy}")
            continue
        if proxy not in valid:
            valid.append(proxy)
    return valid


class ProxyPool:
    """
    Read-only snapshot of candidate proxy endpoints.

    The snapshot is an immutable tuple swapped atomically on refresh, so
    concurrent readers never need a lock. No health tracking happens
    here; failures belong to the external proxy service.
    """

    def __init__(
        self,
        service_url: Optional[str] = None,
        static_proxies: Optional[Iterable[str]] = None,
        refresh_seconds: Optional[int] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.service_url = settings.proxy_service_url if service_url is None else service_url
        self.static_proxies = list(settings.proxies if static_proxies is None else static_proxies)
        self.refresh_seconds = settings.proxy_refresh_seconds if refresh_seconds is None else refresh_seconds
        self.timeout = timeout or settings.proxy_service_timeout
        self._transport = transport
        self._snapshot: tuple[str, ...] = tuple(filter_proxies(self.static_proxies))
        self._loaded_at: Optional[float] = None
        self._refresh_lock = asyncio.Lock()

    def snapshot(self) -> tuple[str, ...]:
        """Current proxy snapshot (possibly empty)."""
        return self._snapshot

    @property
    def proxy_count(self) -> int:
        return len(self._snapshot)

    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return time.monotonic() - self._loaded_at >= self.refresh_seconds

    async def ensure_fresh(self) -> tuple[str, ...]:
        """Refresh the snapshot when it was never loaded or has expired."""
        if self.is_stale():
            async with self._refresh_lock:
                if self.is_stale():
                    await self.refresh()
        return self._snapshot

    async def refresh(self) -> tuple[str, ...]:
        """
        Reload proxies from the service and static configuration.

        An unreachable service or malformed response leaves only the
        statically configured proxies; it is never an error.
        """
        candidates = await self._fetch_service_proxies() + self.static_proxies
        self._snapshot = tuple(filter_proxies(candidates))
        self._loaded_at = time.monotonic()

        if self._snapshot:
            logger.info(f"Loaded {len(self._snapshot)} valid proxies")
        else:
            logger.debug("No valid proxies found, proceeding with direct connection")
        return self._snapshot

    async def _fetch_service_proxies(self) -> list[str]:
        if not self.service_url:
            return []

        endpoint = f"{self.service_url.rstrip('/')}/proxies"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(endpoint)
        except httpx.HTTPError as e:
            logger.debug(f"Proxy service unavailable: {e}")
            return []

        if response.status_code != 200:
            logger.debug(f"Proxy service returned HTTP {response.status_code}")
            return []

        try:
            data = response.json()
        except ValueError as e:
            logger.warning(f"Proxy service returned invalid JSON: {e}")
            return []

        proxies = data.get("proxies") if isinstance(data, dict) else None
        if not isinstance(proxies, list):
            logger.warning("Proxy service response has no 'proxies' list")
            return []
        return proxies


# Global proxy pool instance
proxy_pool = ProxyPool()

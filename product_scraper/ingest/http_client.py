"""HTTP fetch client with identity rotation and a bounded retry/backoff policy."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

import httpx

from product_scraper import metrics
from product_scraper.config import settings
from product_scraper.ingest.base import FetchAttempt, FetchOutcome, FetchResult, Identity
from product_scraper.ingest.header_builder import HeaderBuilder, header_builder
from product_scraper.ingest.identity import IdentityRotator

logger = logging.getLogger(__name__)

# Retryable exceptions (transport errors)
RETRYABLE_EXC = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.ProxyError,
    asyncio.TimeoutError,
)

TIMEOUT_EXC = (httpx.TimeoutException, asyncio.TimeoutError)


def rate_limit_backoff(attempt: int) -> float:
    """Wait after a 429 response."""
    return 5 + 2 * attempt


def transport_backoff(attempt: int) -> float:
    """Wait after a transport-level failure."""
    return 2 + attempt


class FetchClient:
    """
    Fetches a page body, retrying rate limits and transport errors.

    States: Attempting -> Success | RetryWait | GiveUp.
      - HTTP 200 ends in Success.
      - HTTP 429 waits 5 + 2*attempt seconds and tries again.
      - Transport errors wait 2 + attempt seconds and try again.
      - Any other status gives up at once.
    Retries are allowed while attempt < max_retries, each with a newly
    drawn identity.
    """

    def __init__(
        self,
        identities: Optional[IdentityRotator] = None,
        headers: Optional[HeaderBuilder] = None,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        verify_tls: Optional[bool] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.identities = identities or IdentityRotator()
        self.headers = headers or header_builder
        self.max_retries = settings.max_retries if max_retries is None else max_retries
        self.timeout = timeout or settings.request_timeout
        self.verify_tls = settings.verify_tls if verify_tls is None else verify_tls
        self._transport = transport
        self._sleep = sleep or asyncio.sleep
        self._http_clients: dict[Optional[str], httpx.AsyncClient] = {}  # proxy -> client

        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if not self.verify_tls:
            logger.warning("TLS certificate verification is disabled for page fetches")

    def _get_client(self, proxy: Optional[str]) -> httpx.AsyncClient:
        """Get or create the HTTP client routed through a proxy (or direct)."""
        if proxy not in self._http_clients:
            if proxy:
                logger.debug(f"Creating HTTP client with proxy {proxy}")
            self._http_clients[proxy] = httpx.AsyncClient(
                proxy=proxy,
                verify=self.verify_tls,
                follow_redirects=True,
                max_redirects=settings.max_redirects,
                timeout=httpx.Timeout(self.timeout, connect=settings.connect_timeout),
                transport=self._transport,
            )
        return self._http_clients[proxy]

    async def close(self):
        """Close HTTP clients."""
        for proxy, client in self._http_clients.items():
            try:
                await client.aclose()
            except Exception as e:
                logger.error(f"Error closing HTTP client {proxy or 'direct'}: {e}")
        self._http_clients.clear()

    async def _send(self, url: str, identity: Identity, timeout: float) -> httpx.Response:
        client = self._get_client(identity.proxy)
        request_timeout = httpx.Timeout(timeout, connect=min(settings.connect_timeout, timeout))
        # Bound the whole attempt, not just each socket operation
        return await asyncio.wait_for(
            client.get(
                url,
                headers=self.headers.build_headers(identity, url),
                timeout=request_timeout,
            ),
            timeout=timeout,
        )

    async def fetch(
        self,
        url: str,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
    ) -> FetchResult:
        """
        Fetch a URL.

        Args:
            url: Page URL
            max_retries: Retry bound (defaults to the client setting)
            timeout: Per-attempt timeout in seconds

        Returns:
            FetchResult; never raises for HTTP or transport failures
        """
        max_retries = self.max_retries if max_retries is None else max_retries
        timeout = timeout or self.timeout

        await self.identities.proxies.ensure_fresh()

        attempts: list[FetchAttempt] = []
        attempt = 0

        while True:
            identity = self.identities.next_identity()

            try:
                response = await self._send(url, identity, timeout)

            except RETRYABLE_EXC as e:
                timed_out = isinstance(e, TIMEOUT_EXC)
                error = f"{type(e).__name__}: {e}" if str(e) else type(e).__name__
                metrics.record_fetch_attempt(None)
                record = FetchAttempt(
                    url=url,
                    attempt=attempt,
                    identity=identity,
                    outcome=FetchOutcome.RETRYABLE_FAILURE,
                    error=error,
                    timed_out=timed_out,
                )
                attempts.append(record)

                if attempt >= max_retries:
                    logger.error(f"Request failed after {attempt + 1} attempts for {url}: {error}")
                    return FetchResult(
                        url=url,
                        outcome=FetchOutcome.RETRYABLE_FAILURE,
                        attempts=attempts,
                        error=error,
                        timed_out=timed_out,
                    )

                record.wait_seconds = transport_backoff(attempt)
                metrics.record_retry("timeout" if timed_out else "transport")
                logger.warning(
                    f"Request failed, retrying in {record.wait_seconds:.0f}s "
                    f"({attempt + 1}/{max_retries}): {error}"
                )

            except httpx.HTTPError as e:
                # Redirect loops, decoding errors, unsupported schemes
                error = f"{type(e).__name__}: {e}"
                metrics.record_fetch_attempt(None)
                attempts.append(FetchAttempt(
                    url=url,
                    attempt=attempt,
                    identity=identity,
                    outcome=FetchOutcome.FATAL_FAILURE,
                    error=error,
                ))
                logger.warning(f"Request for {url} failed permanently: {error}")
                return FetchResult(
                    url=url,
                    outcome=FetchOutcome.FATAL_FAILURE,
                    attempts=attempts,
                    error=error,
                )

            else:
                sc = response.status_code
                metrics.record_fetch_attempt(sc)

                if sc == 200:
                    attempts.append(FetchAttempt(
                        url=url,
                        attempt=attempt,
                        identity=identity,
                        outcome=FetchOutcome.SUCCESS,
                        status_code=sc,
                    ))
                    return FetchResult(
                        url=url,
                        outcome=FetchOutcome.SUCCESS,
                        body=response.text,
                        status_code=sc,
                        attempts=attempts,
                    )

                if sc == 429:
                    record = FetchAttempt(
                        url=url,
                        attempt=attempt,
                        identity=identity,
                        outcome=FetchOutcome.RETRYABLE_FAILURE,
                        status_code=sc,
                        error="HTTP 429",
                    )
                    attempts.append(record)

                    if attempt >= max_retries:
                        logger.warning(f"Rate limited on {url}, giving up after {attempt + 1} attempts")
                        return FetchResult(
                            url=url,
                            outcome=FetchOutcome.RETRYABLE_FAILURE,
                            status_code=sc,
                            attempts=attempts,
                            error="HTTP 429",
                        )

                    record.wait_seconds = rate_limit_backoff(attempt)
                    metrics.record_retry("rate_limited")
                    logger.warning(
                        f"Rate limited (429) on {url}, retrying in {record.wait_seconds:.0f}s "
                        f"({attempt + 1}/{max_retries})"
                    )

                else:
                    # Deterministic failure (403, 404, 5xx, ...): retrying burns an identity
                    attempts.append(FetchAttempt(
                        url=url,
                        attempt=attempt,
                        identity=identity,
                        outcome=FetchOutcome.FATAL_FAILURE,
                        status_code=sc,
                        error=f"HTTP {sc}",
                    ))
                    logger.warning(f"HTTP {sc} response for URL: {url}")
                    return FetchResult(
                        url=url,
                        outcome=FetchOutcome.FATAL_FAILURE,
                        status_code=sc,
                        attempts=attempts,
                        error=f"HTTP {sc}",
                    )

            await self._sleep(attempts[-1].wait_seconds)
            attempt += 1

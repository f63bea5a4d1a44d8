"""Scrape orchestration: profile selection, fetch, extraction and upsert."""

import asyncio
import logging
import time
from typing import Dict, Iterable, List, Optional
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError

from product_scraper import metrics
from product_scraper.config import settings
from product_scraper.db.repository import ProductStore
from product_scraper.ingest.base import InvalidURLError, ScrapeReason, ScrapeResult
from product_scraper.ingest.extractor import extract_product
from product_scraper.ingest.http_client import FetchClient
from product_scraper.ingest.rate_limiter import SiteRateLimiter, rate_limiter as site_rate_limiter
from product_scraper.ingest.retailers import get_min_interval, get_profile_for_url, rate_limit_key
from product_scraper.logging_config import get_logger

logger = logging.getLogger(__name__)


def validate_url(url: str) -> str:
    """Return the stripped URL, or raise InvalidURLError if it is not absolute http(s)."""
    if not isinstance(url, str):
        raise InvalidURLError(f"URL must be a string, got {type(url).__name__}")
    url = url.strip()
    try:
        parsed = urlparse(url)
    except ValueError as e:
        raise InvalidURLError(f"Invalid URL: {url!r}") from e
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise InvalidURLError(f"Invalid URL: {url!r}")
    return url


class ScrapeEngine:
    """
    Scrapes product pages and upserts accepted records.

    Only fetch failures and the acceptance gate surface to callers, as a
    ScrapeResult reason; missing fields on a fetched page are absorbed.
    """

    def __init__(
        self,
        fetch_client: Optional[FetchClient] = None,
        store: Optional[ProductStore] = None,
        rate_limiter: Optional[SiteRateLimiter] = None,
        sleep=None,
    ):
        self.fetch_client = fetch_client or FetchClient()
        self.store = store or ProductStore()
        self.rate_limiter = rate_limiter or site_rate_limiter
        self._sleep = sleep or asyncio.sleep

    async def close(self):
        await self.fetch_client.close()

    async def scrape_product(
        self,
        url: str,
        max_retries: Optional[int] = None,
        timeout: Optional[float] = None,
        persist: bool = True,
    ) -> ScrapeResult:
        """
        Scrape one product URL.

        Args:
            url: Absolute http(s) product page URL
            max_retries: Override the fetch retry bound
            timeout: Override the per-attempt timeout
            persist: Upsert accepted records (False only extracts)

        Returns:
            ScrapeResult with fields on success, or a failure reason

        Raises:
            InvalidURLError: If url is not an absolute http(s) URL
        """
        url = validate_url(url)
        profile = get_profile_for_url(url)
        source = profile.source.value
        log = get_logger(__name__, site=source, url=url)

        await self.rate_limiter.acquire(rate_limit_key(url, profile), get_min_interval(profile))

        start = time.monotonic()
        fetched = await self.fetch_client.fetch(url, max_retries=max_retries, timeout=timeout)
        metrics.record_fetch_duration(source, time.monotonic() - start)

        if not fetched.ok:
            reason = ScrapeReason.TIMEOUT if fetched.timed_out else ScrapeReason.FETCH_FAILED
            log.warning(f"Failed to fetch {url}: {fetched.error}")
            metrics.record_scrape(source, reason.value)
            return ScrapeResult.failed(url, reason)

        fields = extract_product(fetched.body, url, profile)

        if not fields.is_complete:
            log.warning(
                f"{source} product data incomplete for {url}: "
                f"title={fields.title!r}, price={fields.raw_price!r}"
            )
            metrics.record_scrape(source, ScrapeReason.NO_DATA_EXTRACTED.value)
            return ScrapeResult.failed(url, ScrapeReason.NO_DATA_EXTRACTED, fields)

        if not persist:
            metrics.record_scrape(source, "success")
            return ScrapeResult.ok(url, fields)

        try:
            product, created = await self.store.upsert_by_url(url, fields)
        except SQLAlchemyError as e:
            log.error(f"Failed to store product from {url}: {e}")
            metrics.record_scrape(source, ScrapeReason.STORAGE_FAILED.value)
            return ScrapeResult.failed(url, ScrapeReason.STORAGE_FAILED, fields)

        metrics.record_upsert(source, created)
        metrics.record_scrape(source, "success")
        return ScrapeResult.ok(url, fields, product_id=product.id, created=created)

    async def extract_only(self, url: str, **kwargs) -> ScrapeResult:
        """Scrape a URL without storing the result."""
        return await self.scrape_product(url, persist=False, **kwargs)

    async def scrape_many(
        self,
        urls: Iterable[str],
        concurrency: Optional[int] = None,
        delay: Optional[float] = None,
    ) -> Dict[str, bool]:
        """
        Scrape and store a batch of URLs.

        Workers pause for a fixed delay after each item; requests to the
        same site are additionally spaced by that site's minimum interval.

        Args:
            urls: URLs to scrape (duplicates are scraped once)
            concurrency: Number of parallel workers
            delay: Seconds a worker waits after each item

        Returns:
            Mapping of URL to success flag, in input order
        """
        unique_urls: List[str] = list(dict.fromkeys(urls))
        concurrency = concurrency or settings.scrape_concurrency
        delay = settings.request_delay_seconds if delay is None else delay
        total = len(unique_urls)

        results: Dict[str, bool] = {}
        processed = 0
        logger.info(f"Starting batch scrape of {total} URLs")

        semaphore = asyncio.Semaphore(max(1, concurrency))

        async def scrape_with_semaphore(url: str) -> None:
            nonlocal processed
            async with semaphore:
                try:
                    result = await self.scrape_product(url)
                    results[url] = result.success
                except Exception as e:
                    logger.error(f"Batch scrape failed for URL {url}: {e}")
                    results[url] = False

                processed += 1
                if processed % 10 == 0 or processed == total:
                    success_count = sum(results.values())
                    logger.info(
                        f"Batch scrape progress: {processed}/{total} processed, "
                        f"{success_count} successful"
                    )

                if delay > 0 and processed < total:
                    await self._sleep(delay)

        await asyncio.gather(*(scrape_with_semaphore(url) for url in unique_urls))

        success_count = sum(results.values())
        logger.info(f"Batch scrape completed: {success_count}/{total} successful")

        return {url: results.get(url, False) for url in unique_urls}

"""End-to-end tests for scrape orchestration."""

import httpx
import pytest
from sqlalchemy.exc import OperationalError

from product_scraper.ingest.base import InvalidURLError, ScrapeReason, SourceName
from product_scraper.ingest.rate_limiter import SiteRateLimiter
from product_scraper.ingest.scrape_engine import ScrapeEngine, validate_url

AMAZON_URL = "https://www.amazon.com/dp/B000TEST"
SHOP_URL = "https://shop-a.example/p/1"
NO_PRICE_URL = "https://shop-b.example/p/2"

PAGES = {
    AMAZON_URL: """
        <span id="productTitle">Wireless Headphones</span>
        <span class="a-price"><span class="a-offscreen">$1,299.99</span></span>
        <img id="landingImage" src="/images/I/headphones.jpg">
    """,
    SHOP_URL: """
        <h1>Garden Hose</h1>
        <span itemprop="price">12,50 €</span>
        <div class="product-image"><img data-src="//cdn.shop-a.example/hose.jpg"></div>
    """,
    NO_PRICE_URL: """
        <h1>Mystery Box</h1>
        <span class="price">Contact us</span>
    """,
}


def serve_pages(request: httpx.Request) -> httpx.Response:
    body = PAGES.get(str(request.url))
    if body is None:
        return httpx.Response(404)
    return httpx.Response(200, text=f"<html><body>{body}</body></html>")


class FailingStore:

    async def upsert_by_url(self, url, fields):
        raise OperationalError("INSERT INTO products", {}, Exception("database is locked"))


@pytest.fixture
def build_engine(make_fetch_client, store, sleeper):
    def factory(handler=serve_pages, store_override=None, **client_kwargs):
        return ScrapeEngine(
            fetch_client=make_fetch_client(handler, **client_kwargs),
            store=store_override or store,
            rate_limiter=SiteRateLimiter(sleep=sleeper),
            sleep=sleeper,
        )

    return factory


def test_validate_url():
    assert validate_url("  https://shop.example/p/1 ") == "https://shop.example/p/1"
    for bad in ("", "shop.example/p/1", "ftp://shop.example/p/1", "https://", None):
        with pytest.raises(InvalidURLError):
            validate_url(bad)


class TestScrapeProduct:

    @pytest.mark.asyncio
    async def test_success_creates_record(self, build_engine, store):
        engine = build_engine()
        result = await engine.scrape_product(AMAZON_URL)

        assert result.success
        assert result.created
        assert result.fields.source_name == SourceName.AMAZON

        stored = await store.get_by_url(AMAZON_URL)
        assert stored.id == result.product_id
        assert stored.title == "Wireless Headphones"
        assert str(stored.price) == "1299.99"
        assert stored.image_url == "https://www.amazon.com/images/I/headphones.jpg"
        assert stored.source == "amazon"

    @pytest.mark.asyncio
    async def test_scraping_twice_keeps_one_record(self, build_engine, store):
        engine = build_engine()
        first = await engine.scrape_product(SHOP_URL)
        second = await engine.scrape_product(SHOP_URL)

        assert first.success and second.success
        assert first.created and not second.created
        assert first.product_id == second.product_id
        assert await store.count() == 1

        stored = await store.get_by_url(SHOP_URL)
        assert str(stored.price) == "12.50"
        assert stored.image_url == "https://cdn.shop-a.example/hose.jpg"

    @pytest.mark.asyncio
    async def test_title_without_price_is_not_stored(self, build_engine, store):
        engine = build_engine()
        result = await engine.scrape_product(NO_PRICE_URL)

        assert not result.success
        assert result.reason == ScrapeReason.NO_DATA_EXTRACTED
        assert result.fields.title == "Mystery Box"
        assert result.fields.normalized_price is None
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_persistent_connection_failure(self, build_engine, store, sleeper):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        engine = build_engine(refuse)
        result = await engine.scrape_product(SHOP_URL, max_retries=2)

        assert not result.success
        assert result.reason == ScrapeReason.FETCH_FAILED
        assert sleeper.calls == [2, 3]
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_timeout_reason(self, build_engine):
        def slow(request):
            raise httpx.ReadTimeout("read timed out", request=request)

        engine = build_engine(slow)
        result = await engine.scrape_product(SHOP_URL, max_retries=0)

        assert result.reason == ScrapeReason.TIMEOUT

    @pytest.mark.asyncio
    async def test_not_found(self, build_engine):
        engine = build_engine()
        result = await engine.scrape_product("https://shop-a.example/missing")
        assert result.reason == ScrapeReason.FETCH_FAILED

    @pytest.mark.asyncio
    async def test_rate_limited_then_success(self, build_engine, store, sleeper):
        calls = []

        def throttled(request):
            calls.append(request)
            if len(calls) == 1:
                return httpx.Response(429)
            return serve_pages(request)

        engine = build_engine(throttled)
        result = await engine.scrape_product(SHOP_URL)

        assert result.success
        assert 5 in sleeper.calls
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_storage_failure(self, build_engine):
        engine = build_engine(store_override=FailingStore())
        result = await engine.scrape_product(SHOP_URL)

        assert not result.success
        assert result.reason == ScrapeReason.STORAGE_FAILED
        assert result.fields.title == "Garden Hose"

    @pytest.mark.asyncio
    async def test_extract_only_does_not_store(self, build_engine, store):
        engine = build_engine()
        result = await engine.extract_only(SHOP_URL)

        assert result.success
        assert result.product_id is None
        assert await store.count() == 0

    @pytest.mark.asyncio
    async def test_invalid_url_raises(self, build_engine):
        engine = build_engine()
        with pytest.raises(InvalidURLError):
            await engine.scrape_product("not a url")


class TestScrapeMany:

    @pytest.mark.asyncio
    async def test_batch_results(self, build_engine, store, sleeper):
        engine = build_engine()
        urls = [SHOP_URL, NO_PRICE_URL, SHOP_URL, "not a url", AMAZON_URL]

        results = await engine.scrape_many(urls, concurrency=1, delay=1.5)

        assert results == {
            SHOP_URL: True,
            NO_PRICE_URL: False,
            "not a url": False,
            AMAZON_URL: True,
        }
        assert list(results) == [SHOP_URL, NO_PRICE_URL, "not a url", AMAZON_URL]
        assert await store.count() == 2
        # Delay after every item except the last
        assert sleeper.calls.count(1.5) == 3

    @pytest.mark.asyncio
    async def test_concurrent_batch(self, build_engine, store):
        engine = build_engine()
        results = await engine.scrape_many([SHOP_URL, AMAZON_URL, NO_PRICE_URL], concurrency=3, delay=0)

        assert results == {SHOP_URL: True, AMAZON_URL: True, NO_PRICE_URL: False}
        assert await store.count() == 2

    @pytest.mark.asyncio
    async def test_empty_batch(self, build_engine):
        engine = build_engine()
        assert await engine.scrape_many([]) == {}

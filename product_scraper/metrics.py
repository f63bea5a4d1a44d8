"""Prometheus metrics for the product scraper."""

from prometheus_client import Counter, Histogram, Info

from product_scraper import __version__

# Application info
app_info = Info("product_scraper", "Product scraper application info")
app_info.info({"version": __version__, "name": "product-scraper"})

# Scrape metrics
scrapes_total = Counter(
    "product_scrapes_total",
    "Total number of product scrapes by outcome",
    ["source", "outcome"],
)

# Fetch metrics
fetch_attempts_total = Counter(
    "product_fetch_attempts_total",
    "Total number of HTTP fetch attempts",
    ["status"],
)

fetch_retries_total = Counter(
    "product_fetch_retries_total",
    "Total number of retry waits scheduled",
    ["reason"],
)

fetch_duration_seconds = Histogram(
    "product_fetch_duration_seconds",
    "Time spent fetching a product page, retries included",
    ["source"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

# Storage metrics
product_upserts_total = Counter(
    "product_upserts_total",
    "Total number of product upserts",
    ["source", "action"],
)


def record_scrape(source: str, outcome: str):
    """Record the final outcome of a scrape."""
    scrapes_total.labels(source=source, outcome=outcome).inc()


def record_fetch_attempt(status_code: int | None):
    """Record a single HTTP attempt, bucketed by status class."""
    if status_code is None:
        status = "transport_error"
    elif status_code == 429:
        status = "429"
    else:
        status = f"{status_code // 100}xx"
    fetch_attempts_total.labels(status=status).inc()


def record_retry(reason: str):
    """Record a scheduled retry wait."""
    fetch_retries_total.labels(reason=reason).inc()


def record_fetch_duration(source: str, duration: float):
    """Record total fetch duration for a URL."""
    fetch_duration_seconds.labels(source=source).observe(duration)


def record_upsert(source: str, created: bool):
    """Record a product create or update."""
    action = "created" if created else "updated"
    product_upserts_total.labels(source=source, action=action).inc()

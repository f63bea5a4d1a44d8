"""Fallback profile for unrecognized storefronts."""

from product_scraper.ingest.base import SourceName
from product_scraper.ingest.retailers.base import ExtractionProfile

# Common e-commerce patterns, schema.org microdata first
GENERIC_PROFILE = ExtractionProfile(
    source=SourceName.GENERIC,
    title_selectors=(
        "h1",
        ".product-title",
        ".title",
        "[class*='title']",
        "[class*='name']",
        ".product-name",
        ".item-title",
        "meta[property='og:title']",
    ),
    price_selectors=(
        "[itemprop='price']",
        "[class*='price']",
        ".cost",
        ".amount",
        "[data-price]",
        ".product-price",
        ".item-price",
        ".current-price",
        "meta[property='product:price:amount']",
    ),
    image_selectors=(
        ".product-image img",
        ".main-image img",
        "img[class*='product']",
        ".item-image img",
        ".gallery img:first-child",
    ),
    description_selectors=(
        "[itemprop='description']",
        ".product-description",
        "#description",
        "meta[name='description']",
    ),
    min_request_interval=2.0,
)

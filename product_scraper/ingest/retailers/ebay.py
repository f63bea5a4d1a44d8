"""eBay listing page profile."""

from product_scraper.ingest.base import SourceName
from product_scraper.ingest.retailers.base import ExtractionProfile

EBAY_PROFILE = ExtractionProfile(
    source=SourceName.EBAY,
    title_selectors=(
        "#x-title-label-lbl",
        "h1.x-item-title__mainTitle span",
        "h1#title",
        ".x-item-title-label h1",
        "h1[itemprop='name']",
    ),
    price_selectors=(
        ".x-price-primary span[itemprop='price']",
        ".x-price-primary .ux-textspans",
        ".notranslate .price",
        ".notranslate.primary",
        "#prcIsum",
        ".u-flL.condText",
    ),
    image_selectors=(
        "#icImg",
        ".ux-image-carousel-item.active img",
        ".img-zoom-wrap img",
        ".vi-image img",
    ),
    description_selectors=(
        "#viTabs_0_is",
        ".x-item-description",
    ),
    min_request_interval=2.0,
    domains=(
        "ebay.com",
        "ebay.co.uk",
        "ebay.de",
        "ebay.fr",
        "ebay.it",
    ),
)

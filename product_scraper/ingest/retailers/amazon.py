"""Amazon product page profile."""

from product_scraper.ingest.base import SourceName
from product_scraper.ingest.retailers.base import ExtractionProfile

# Ordered by priority - most common/reliable first
TITLE_SELECTORS = (
    "#productTitle",
    ".product-title",
    "h1.a-size-large",
    "h1#title",
)

PRICE_SELECTORS = (
    ".a-price-whole",
    ".a-price .a-offscreen",
    ".a-price-range",
    "span.a-price.a-text-price.a-size-medium.apexPriceToPay",
    ".a-price.a-text-price.a-size-medium.apexPriceToPay .a-offscreen",
    "#corePrice_feature_div .a-price .a-offscreen",
    "#priceblock_ourprice",
    "#priceblock_dealprice",
)

IMAGE_SELECTORS = (
    "#landingImage",
    ".a-dynamic-image",
    "#imgBlkFront",
    "img[data-a-dynamic-image]",
)

DESCRIPTION_SELECTORS = (
    "#feature-bullets ul",
    ".a-unordered-list.a-vertical.a-spacing-mini",
    ".product-description",
    "#productDescription",
)

AMAZON_PROFILE = ExtractionProfile(
    source=SourceName.AMAZON,
    title_selectors=TITLE_SELECTORS,
    price_selectors=PRICE_SELECTORS,
    image_selectors=IMAGE_SELECTORS,
    description_selectors=DESCRIPTION_SELECTORS,
    min_request_interval=3.0,
    domains=(
        "amazon.com",
        "amazon.co.uk",
        "amazon.de",
        "amazon.fr",
        "amazon.it",
        "amazon.es",
        "amazon.ca",
        "amazon.com.au",
        "amazon.co.jp",
        "amazon.in",
    ),
)

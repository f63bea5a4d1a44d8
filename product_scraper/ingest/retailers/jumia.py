"""Jumia product page profile."""

from product_scraper.ingest.base import SourceName
from product_scraper.ingest.retailers.base import ExtractionProfile

JUMIA_PROFILE = ExtractionProfile(
    source=SourceName.JUMIA,
    title_selectors=(
        "h1.-fs20.-pts.-pbxs",
        ".name",
        ".product-name",
        "h1",
    ),
    price_selectors=(
        ".-b.-ltr.-tal.-fs24.-prxs",
        ".price",
        ".-prc",
        ".special-price",
        "span.-tal.-gy5",
    ),
    image_selectors=(
        ".-df.-i-ctr.img._img",
        ".gallery img",
        ".product-image img",
        "img",
    ),
    description_selectors=(
        ".markup.-mhm.-pvl.-oxa.-sc",
        "#description",
    ),
    min_request_interval=2.0,
    domains=(
        "jumia.com.ng",
        "jumia.co.ke",
        "jumia.com.eg",
        "jumia.ma",
        "jumia.com.gh",
    ),
)

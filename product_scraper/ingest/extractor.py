"""Selector fallback-chain extraction of product fields."""

from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from selectolax.parser import HTMLParser, Node

from product_scraper.config import settings
from product_scraper.ingest.base import ExtractedFields
from product_scraper.ingest.image_resolver import resolve_image
from product_scraper.ingest.retailers.base import ExtractionProfile
from product_scraper.normalize.processor import clean_text, normalize_price, truncate_description

logger = logging.getLogger(__name__)

# Some sites only expose a value in attributes (meta content, data-price)
FALLBACK_ATTRIBUTES = ("data-price", "content", "value", "data-value")


def _select_first(parser: HTMLParser, selector: str) -> Optional[Node]:
    try:
        return parser.css_first(selector)
    except Exception as e:
        logger.debug(f"Selector error: {selector[:50]} - {e}")
        return None


def _node_text(node: Node) -> Optional[str]:
    return clean_text(node.text(separator=" "))


def extract_field(
    parser: HTMLParser,
    selectors: Sequence[str],
    attributes: Iterable[str] = FALLBACK_ATTRIBUTES,
) -> Optional[str]:
    """
    Return the first non-empty value for a logical field.

    Selectors are tried strictly in order and the first one whose matched
    element has non-empty text wins. When no match has text, a second pass
    over the same selectors returns the first non-empty fallback attribute.

    Args:
        parser: Parsed document
        selectors: Ordered candidate CSS selectors
        attributes: Attributes to inspect in the second pass

    Returns:
        Field value, or None when nothing matches
    """
    matched: list[Node] = []

    for i, selector in enumerate(selectors):
        node = _select_first(parser, selector)
        if node is None:
            continue
        text = _node_text(node)
        if text:
            logger.debug(f"Selector {i + 1}/{len(selectors)} matched: {selector[:50]}")
            return text
        matched.append(node)

    attributes = tuple(attributes)
    for node in matched:
        node_attributes = node.attributes
        for name in attributes:
            value = clean_text(node_attributes.get(name))
            if value:
                return value

    return None


def extract_image(
    parser: HTMLParser,
    selectors: Sequence[str],
    page_url: str,
) -> Optional[str]:
    """Return the first image along the selector chain that resolves to a valid URL."""
    for selector in selectors:
        node = _select_first(parser, selector)
        if node is None:
            continue
        image_url = resolve_image(node, page_url)
        if image_url:
            return image_url
    return None


def extract_product(
    html: str,
    url: str,
    profile: ExtractionProfile,
    description_max_length: Optional[int] = None,
) -> ExtractedFields:
    """
    Extract product fields from a page using a profile's selector chains.

    Missing or malformed fields come back as None; this never raises for
    page content.
    """
    parser = HTMLParser(html)
    max_length = description_max_length or settings.description_max_length

    raw_price = extract_field(parser, profile.price_selectors)

    fields = ExtractedFields(
        source_name=profile.source,
        title=extract_field(parser, profile.title_selectors),
        raw_price=raw_price,
        normalized_price=normalize_price(raw_price),
        image_url=extract_image(parser, profile.image_selectors, url),
        description=truncate_description(
            extract_field(parser, profile.description_selectors),
            max_length,
        ),
    )

    if raw_price and fields.normalized_price is None:
        logger.debug(f"Unparseable price {raw_price!r} on {url}")

    return fields

"""Resolve product image sources into absolute URLs."""

import logging
import re
from typing import Optional
from urllib.parse import urlparse

from selectolax.parser import Node

logger = logging.getLogger(__name__)

# Checked in order; lazy-loading attributes come after the real src
IMAGE_SOURCE_ATTRIBUTES = ("src", "data-src", "data-lazy-src", "data-original")

_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.\-]*:")


def pick_image_source(node: Node) -> Optional[str]:
    """Return the first non-empty image source attribute of an element."""
    attributes = node.attributes
    for name in IMAGE_SOURCE_ATTRIBUTES:
        value = attributes.get(name)
        if value and value.strip():
            return value.strip()
    return None


def is_valid_image_url(url: str) -> bool:
    """Absolute http(s) URL with a host and no embedded whitespace."""
    if not url or any(c.isspace() for c in url):
        return False
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.hostname)


def resolve_image_url(src: Optional[str], page_url: str) -> Optional[str]:
    """
    Make an image source absolute against the page it came from.

    Scheme-less sources are rebased onto the page's scheme and host;
    protocol-relative sources ("//cdn...") only borrow the scheme.

    Returns:
        Absolute URL, or None when the result is malformed
    """
    if not src:
        return None
    src = src.strip()

    if not _SCHEME_RE.match(src):
        try:
            page = urlparse(page_url)
        except ValueError:
            return None
        if not page.scheme or not page.netloc:
            return None

        if src.startswith("//"):
            src = f"{page.scheme}:{src}"
        else:
            separator = "" if src.startswith("/") else "/"
            src = f"{page.scheme}://{page.netloc}{separator}{src}"

    if not is_valid_image_url(src):
        logger.debug(f"Dropping malformed image URL: {src[:100]}")
        return None
    return src


def resolve_image(node: Node, page_url: str) -> Optional[str]:
    """Pick an element's image source and resolve it against page_url."""
    return resolve_image_url(pick_image_source(node), page_url)

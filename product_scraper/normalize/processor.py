"""Normalize raw scraped values into their stored form."""

import logging
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")

_NON_NUMERIC = re.compile(r"[^\d.,\-]")
_NUMBER_RUN = re.compile(r"[\d.,]+")
_WHITESPACE = re.compile(r"\s+")


def normalize_price(raw: Optional[str]) -> Optional[Decimal]:
    """
    Convert a locale-formatted price string into a Decimal.

    Handles "1,234.56", "1.234,56", "$19.99" and "€1.234,00". When both
    separators occur the later one is the decimal separator; a lone comma
    is decimal only when at most two digits follow it.

    Args:
        raw: Raw price text as scraped

    Returns:
        Decimal price, or None when the text holds no parsable number
    """
    if not raw:
        return None

    cleaned = _NON_NUMERIC.sub("", raw)
    negative = cleaned.lstrip(".,").startswith("-")

    # First numeric run only, so ranges like "$10 - $20" yield 10
    match = _NUMBER_RUN.search(cleaned)
    if not match:
        return None
    # Leading separators belong to currency prefixes ("Rs. 1,299"); trailing
    # ones still decide the format ("1.299," is 1299)
    number = match.group(0).lstrip(".,")
    if not number:
        return None

    has_comma = "," in number
    has_dot = "." in number

    if has_comma and has_dot:
        if number.rfind(",") > number.rfind("."):
            # European format: 1.234,56
            number = number.replace(".", "").replace(",", ".")
        else:
            # US format: 1,234.56
            number = number.replace(",", "")
    elif has_comma:
        body = number.rstrip(",")
        after_comma = body[body.rfind(",") + 1:]
        if "," in body and len(after_comma) <= 2:
            number = body.replace(",", ".")
        else:
            number = body.replace(",", "")

    # A trailing separator carries no fraction digits
    if number.endswith("."):
        number = number[:-1]

    try:
        value = Decimal(number)
    except InvalidOperation:
        logger.debug(f"Could not parse price from: {raw!r}")
        return None

    return -value if negative else value


def quantize_price(value: Decimal) -> Decimal:
    """Round a price to two fractional digits."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def clean_text(text: Optional[str]) -> Optional[str]:
    """Collapse runs of whitespace; empty results become None."""
    if text is None:
        return None
    collapsed = _WHITESPACE.sub(" ", text).strip()
    return collapsed or None


def truncate_description(text: Optional[str], max_length: int = 500) -> Optional[str]:
    """Clean a description and cut it to at most max_length characters."""
    cleaned = clean_text(text)
    if cleaned is None:
        return None
    return cleaned[:max_length].rstrip() or None

"""Site strategy table: maps a URL to its extraction profile."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, Optional
from urllib.parse import urlparse

from product_scraper.config import settings
from product_scraper.ingest.base import SourceName
from product_scraper.ingest.retailers.amazon import AMAZON_PROFILE
from product_scraper.ingest.retailers.base import ExtractionProfile
from product_scraper.ingest.retailers.ebay import EBAY_PROFILE
from product_scraper.ingest.retailers.generic import GENERIC_PROFILE
from product_scraper.ingest.retailers.jumia import JUMIA_PROFILE

logger = logging.getLogger(__name__)

_PROFILES: Mapping[SourceName, ExtractionProfile] = MappingProxyType({
    SourceName.AMAZON: AMAZON_PROFILE,
    SourceName.EBAY: EBAY_PROFILE,
    SourceName.JUMIA: JUMIA_PROFILE,
    SourceName.GENERIC: GENERIC_PROFILE,
})

# Brand label that identifies a site family within a hostname
_BRAND_LABELS: Mapping[str, SourceName] = MappingProxyType({
    "amazon": SourceName.AMAZON,
    "ebay": SourceName.EBAY,
    "jumia": SourceName.JUMIA,
})


def _host(url: str) -> str:
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    return host.lower().rstrip(".")


def detect_source(url: str) -> SourceName:
    """
    Detect the site family of a URL.

    A family matches when its brand is a whole hostname label followed by
    at least one more label (www.amazon.co.uk, m.ebay.de). Anything else,
    including hosts such as amazonaws.com, is generic.
    """
    labels = _host(url).split(".")
    for label in labels[:-1]:
        source = _BRAND_LABELS.get(label)
        if source is not None:
            return source
    return SourceName.GENERIC


def get_profile(source: SourceName) -> ExtractionProfile:
    """Return the profile for a source, falling back to generic."""
    return _PROFILES.get(source, GENERIC_PROFILE)


def get_profile_for_url(url: str) -> ExtractionProfile:
    """Select the extraction profile for a URL."""
    return get_profile(detect_source(url))


def list_profiles() -> list[ExtractionProfile]:
    """All registered profiles, generic last."""
    return list(_PROFILES.values())


def get_supported_domains() -> dict[str, list[str]]:
    """Known marketplace domains per site family."""
    return {
        profile.source.value: list(profile.domains)
        for profile in _PROFILES.values()
        if profile.domains
    }


def get_min_interval(profile: ExtractionProfile) -> float:
    """Minimum delay for a profile, honouring configured overrides."""
    override: Optional[float] = settings.site_rate_limits.get(profile.source.value)
    return profile.min_request_interval if override is None else float(override)


def rate_limit_key(url: str, profile: ExtractionProfile) -> str:
    """
    Key used to space requests to the same site.

    Known families share one key across their regional domains; generic
    pages are keyed by host so unrelated shops do not throttle each other.
    """
    if profile.source == SourceName.GENERIC:
        return _host(url) or SourceName.GENERIC.value
    return profile.source.value


__all__ = [
    "ExtractionProfile",
    "detect_source",
    "get_min_interval",
    "get_profile",
    "get_profile_for_url",
    "get_supported_domains",
    "list_profiles",
    "rate_limit_key",
]

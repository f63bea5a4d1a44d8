"""Extraction profile definition."""

from __future__ import annotations

from dataclasses import dataclass

from product_scraper.ingest.base import SourceName


@dataclass(frozen=True)
class ExtractionProfile:
    """Selector fallback chains and rate policy for one site family."""

    source: SourceName
    title_selectors: tuple[str, ...]
    price_selectors: tuple[str, ...]
    image_selectors: tuple[str, ...]
    description_selectors: tuple[str, ...] = ()
    min_request_interval: float = 2.0  # Seconds between requests to this site
    domains: tuple[str, ...] = ()  # Known marketplace domains, informational

    def __post_init__(self):
        if not self.title_selectors or not self.price_selectors:
            raise ValueError(f"Profile {self.source.value} needs title and price selectors")
        if self.min_request_interval < 0:
            raise ValueError(f"Profile {self.source.value} has a negative request interval")

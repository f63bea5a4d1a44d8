"""Core data types shared by the fetch, extraction and orchestration layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class SourceName(str, Enum):
    """Site family a product was scraped from."""

    AMAZON = "amazon"
    EBAY = "ebay"
    JUMIA = "jumia"
    GENERIC = "generic"
    MANUAL = "manual"  # Rows entered outside the scraper


@dataclass(frozen=True)
class Identity:
    """Outbound identity used for one fetch attempt."""

    user_agent: str
    proxy: Optional[str] = None


class FetchOutcome(str, Enum):
    """Outcome of a fetch attempt (or of a whole fetch call)."""

    SUCCESS = "success"
    RETRYABLE_FAILURE = "retryable_failure"
    FATAL_FAILURE = "fatal_failure"


@dataclass
class FetchAttempt:
    """A single HTTP attempt within one fetch call."""

    url: str
    attempt: int  # 0-based
    identity: Identity
    outcome: FetchOutcome
    status_code: Optional[int] = None
    error: Optional[str] = None
    timed_out: bool = False
    wait_seconds: float = 0.0  # Backoff scheduled after this attempt


@dataclass
class FetchResult:
    """Final result of a fetch call, retries included."""

    url: str
    outcome: FetchOutcome
    body: Optional[str] = None
    status_code: Optional[int] = None
    attempts: list[FetchAttempt] = field(default_factory=list)
    error: Optional[str] = None
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome == FetchOutcome.SUCCESS and self.body is not None

    @property
    def retry_count(self) -> int:
        return max(len(self.attempts) - 1, 0)


@dataclass
class ExtractedFields:
    """Fields pulled from a product page."""

    source_name: SourceName
    title: Optional[str] = None
    raw_price: Optional[str] = None
    normalized_price: Optional[Decimal] = None
    image_url: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Acceptance gate: a record needs both a title and a parsed price."""
        return bool(self.title) and self.normalized_price is not None


class ScrapeReason(str, Enum):
    """Why a scrape did not produce a stored record."""

    NO_DATA_EXTRACTED = "no_data_extracted"
    FETCH_FAILED = "fetch_failed"
    TIMEOUT = "timeout"
    STORAGE_FAILED = "storage_failed"


@dataclass
class ScrapeResult:
    """Outcome of scraping one URL."""

    url: str
    success: bool
    fields: Optional[ExtractedFields] = None
    reason: Optional[ScrapeReason] = None
    product_id: Optional[int] = None
    created: bool = False

    @classmethod
    def ok(
        cls,
        url: str,
        fields: ExtractedFields,
        product_id: Optional[int] = None,
        created: bool = False,
    ) -> "ScrapeResult":
        return cls(url=url, success=True, fields=fields, product_id=product_id, created=created)

    @classmethod
    def failed(
        cls,
        url: str,
        reason: ScrapeReason,
        fields: Optional[ExtractedFields] = None,
    ) -> "ScrapeResult":
        return cls(url=url, success=False, fields=fields, reason=reason)


class InvalidURLError(ValueError):
    """Raised when a scrape is requested for a URL that is not absolute http(s)."""

    pass

"""Application configuration using Pydantic settings."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "sqlite+aiosqlite:///./products.db"

    # App Settings
    debug: bool = False
    log_level: str = "INFO"
    log_dir: Optional[str] = None

    # ==========================================================================
    # Fetch Settings
    # ==========================================================================
    request_delay_seconds: float = Field(2.0, ge=0)  # Fixed delay between batch items
    max_retries: int = Field(3, ge=0)
    request_timeout: float = Field(30.0, gt=0)  # Overall per-attempt timeout
    connect_timeout: float = Field(10.0, gt=0)
    max_redirects: int = Field(10, ge=0)
    verify_tls: bool = True  # False only for targets with broken certificate chains

    # ==========================================================================
    # Proxy Pool Settings
    # ==========================================================================
    proxy_service_url: str = "http://localhost:8080"  # Empty string disables the service
    proxy_service_timeout: float = Field(5.0, gt=0)
    proxy_refresh_seconds: int = Field(300, ge=0)
    proxies: list[str] = []  # Static proxies merged with the service snapshot

    # ==========================================================================
    # Identity Settings
    # ==========================================================================
    additional_user_agents: list[str] = []

    # ==========================================================================
    # Extraction / Storage Settings
    # ==========================================================================
    description_max_length: int = Field(500, gt=0)

    # ==========================================================================
    # Batch Settings
    # ==========================================================================
    scrape_concurrency: int = Field(1, ge=1)
    # Per-source minimum delay override (seconds), e.g. {"amazon": 5}
    site_rate_limits: dict[str, float] = {}

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()

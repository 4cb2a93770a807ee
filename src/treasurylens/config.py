"""Application configuration via pydantic-settings."""

import json
from datetime import date
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from treasurylens.core.constants import (
    DEFAULT_PAIR_TOLERANCE,
    MSTR_CIK,
    MSTR_FIRST_PURCHASE_DATE,
    PRICE_CACHE_TTL_SECONDS,
    SEC_EDGAR_CACHE_TTL_DOCUMENT,
    SEC_EDGAR_CACHE_TTL_SUBMISSIONS,
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # Core
    env: Literal["development", "staging", "production"] = Field(
        default="development", alias="TREASURYLENS_ENV"
    )
    debug: bool = Field(default=False, alias="TREASURYLENS_DEBUG")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", alias="TREASURYLENS_LOG_LEVEL"
    )

    # Redis (optional response cache)
    redis_url: str | None = Field(
        default=None,
        description="Redis URL for caching SEC and price responses; caching is off when unset",
    )

    # SEC EDGAR
    sec_user_agent: str = Field(
        default="crypto-portfolio-tracker.app (support@crypto-portfolio-tracker.app)",
        description="User-Agent sent to SEC EDGAR (must identify a contact)",
    )
    sec_cache_ttl_submissions: int = Field(default=SEC_EDGAR_CACHE_TTL_SUBMISSIONS)
    sec_cache_ttl_document: int = Field(default=SEC_EDGAR_CACHE_TTL_DOCUMENT)

    # Treasury target
    treasury_cik: str = Field(default=MSTR_CIK)
    treasury_company_name: str = Field(default="MicroStrategy")
    treasury_symbol: str = Field(default="MSTR")
    treasury_start_date: date = Field(default=MSTR_FIRST_PURCHASE_DATE)

    # Discovery / sampling policy
    treasury_form_types: list[str] = Field(
        default=["10-K", "10-Q", "8-K"],
        description="Form type prefixes kept for treasury disclosure (amendments match too)",
    )
    treasury_recent_window_days: int = Field(
        default=180,
        description="Filings newer than this are always kept",
    )
    treasury_max_per_month: int = Field(
        default=2,
        description="Max filings sampled per calendar month outside the recent window",
    )
    treasury_max_candidates: int = Field(default=60)
    treasury_max_history_pages: int = Field(default=4)
    treasury_concurrency: int = Field(
        default=2,
        description="Concurrent in-flight filing extractions",
    )

    # Extraction policy
    treasury_pair_tolerance: float = Field(
        default=DEFAULT_PAIR_TOLERANCE,
        description="Max relative deviation between stated and derived average cost",
    )

    # Prices (Stooq)
    price_symbol: str = Field(default="btcusd")
    stooq_base_url: str = Field(default="https://stooq.com")
    price_cache_ttl: int = Field(default=PRICE_CACHE_TTL_SECONDS)

    @field_validator("treasury_form_types", mode="before")
    @classmethod
    def parse_form_types(cls, v: str | list[str] | None) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = v.strip()
            if v.startswith("["):
                v = json.loads(v)
            else:
                v = [f.strip() for f in v.split(",") if f.strip()]
        return [f.upper() for f in v]

    @field_validator("treasury_cik", mode="before")
    @classmethod
    def pad_cik(cls, v: str | int) -> str:
        return str(v).strip().zfill(10)

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

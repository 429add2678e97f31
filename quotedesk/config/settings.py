import os
from functools import lru_cache

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    FINNHUB_API_KEY: str | None = None
    FINNHUB_BASE_URL: str = "https://finnhub.io/api/v1"
    QUOTE_CACHE_TTL_MS: int = Field(default=10_000, gt=0)
    QUOTE_UPSTREAM_TIMEOUT_SEC: float = Field(default=5.0, gt=0)
    QUOTE_CACHE_MAX_ENTRIES: int | None = Field(default=None, gt=0)
    QUOTE_SINGLE_FLIGHT: bool = False
    ANALYSIS_SERVICE_BASE_URL: str | None = None
    ANALYSIS_DEFAULT_YEAR: int = 2025
    ANALYSIS_DEFAULT_QUARTER: int = Field(default=3, ge=1, le=4)

    @classmethod
    def from_env(cls) -> "Settings":
        raw: dict[str, object] = {}
        for name in (
            "FINNHUB_BASE_URL",
            "QUOTE_CACHE_TTL_MS",
            "QUOTE_UPSTREAM_TIMEOUT_SEC",
            "QUOTE_CACHE_MAX_ENTRIES",
            "ANALYSIS_DEFAULT_YEAR",
            "ANALYSIS_DEFAULT_QUARTER",
        ):
            value = os.getenv(name, "").strip()
            if value:
                raw[name] = value

        # blank secrets count as unset
        raw["FINNHUB_API_KEY"] = os.getenv("FINNHUB_API_KEY", "").strip() or None
        raw["ANALYSIS_SERVICE_BASE_URL"] = os.getenv("ANALYSIS_SERVICE_BASE_URL", "").strip() or None
        raw["QUOTE_SINGLE_FLIGHT"] = os.getenv("QUOTE_SINGLE_FLIGHT", "0").strip().lower() in _TRUTHY

        return cls.model_validate(raw)


@lru_cache
def get_settings() -> Settings:
    return Settings.from_env()

"""Application configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OVERALL_THRESHOLD = 83
DEFAULT_SECTION_THRESHOLD = 89
DEFAULT_CATEGORY_THRESHOLD = 83


class Settings(BaseSettings):
    """Settings loaded from ``AUDIT_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    env: Literal["development", "production", "test"] = "development"
    log_level: str = "INFO"

    # File-backed collaborators
    data_dir: Path = Path("data/samples")
    report_dir: Path = Path("reports")

    # Thresholds
    threshold_cache_seconds: float = 300.0
    default_overall_threshold: int = DEFAULT_OVERALL_THRESHOLD
    default_section_threshold: int = DEFAULT_SECTION_THRESHOLD
    default_category_threshold: int = DEFAULT_CATEGORY_THRESHOLD

    # Evidence downloads
    attachment_workers: int = 4
    http_timeout_seconds: float = 15.0

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings instance."""
    return Settings()


__all__ = [
    "DEFAULT_CATEGORY_THRESHOLD",
    "DEFAULT_OVERALL_THRESHOLD",
    "DEFAULT_SECTION_THRESHOLD",
    "Settings",
    "get_settings",
]

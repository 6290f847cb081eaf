"""
Ingestion utility configuration.

This module provides settings for the normalization and capability-detection
helpers, loaded from environment variables.
"""

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find .env file in project root
_env_file = Path(__file__).parent.parent.parent.parent.parent / ".env"

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]


class IngestSettings(BaseSettings):
    """
    Ingestion settings from environment variables.

    All settings are prefixed with GLEAN_INGEST_ in environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="GLEAN_INGEST_",
        env_file=str(_env_file) if _env_file.exists() else None,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Transparent compression
    gzip_executable: str = "gzip"
    transparent_compression: bool = True  # .gz files pass through the gzip tool on write and read
    temp_dir: str | None = None  # Defaults to the system temp directory

    # Probe payload is every code point in [start, end)
    probe_payload_start: int = Field(default=32, ge=1)
    probe_payload_end: int = Field(default=3201, gt=256, le=0xD800)

    # XML decoding
    declaration_scan_bytes: int = Field(default=1024, gt=0)
    default_encoding: str = "utf-8"

    log_level: LogLevel = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, value: object) -> object:
        return value.upper() if isinstance(value, str) else value


# Global instance
settings = IngestSettings()

"""Environment-aware configuration with validation.

This module provides centralized configuration management using Pydantic Settings.
All environment variables are validated at startup to fail fast on misconfigurations.
"""

import re
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# S3 bucket naming rules (lowercase, digits, dots, hyphens; 3-63 chars)
BUCKET_NAME_PATTERN = re.compile(r"^[a-z0-9][a-z0-9.-]{1,61}[a-z0-9]$")


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Settings are cached to avoid repeated parsing.

    Example:
        >>> settings = get_settings()
        >>> print(settings.processed_bucket)
        'processed-videos'
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Environment
    environment: Literal["dev", "staging", "prod"] = Field(
        default="dev",
        description="Deployment environment",
    )
    aws_region: str = Field(
        default="us-east-1",
        alias="AWS_REGION",
        description="AWS region for all services",
    )
    aws_endpoint_url: str | None = Field(
        default=None,
        alias="AWS_ENDPOINT_URL",
        description="Override endpoint for S3/DynamoDB (e.g. LocalStack)",
    )

    # S3 Configuration
    raw_bucket: str = Field(
        default="raw-videos",
        alias="RAW_VIDEO_BUCKET",
        description="S3 bucket receiving raw uploads",
    )
    processed_bucket: str = Field(
        default="processed-videos",
        alias="PROCESSED_VIDEO_BUCKET",
        description="S3 bucket for published renditions",
    )

    # DynamoDB
    videos_table: str = Field(
        default="videos",
        alias="VIDEOS_TABLE",
        description="DynamoDB table holding one status record per video",
    )

    # Local scratch space
    intake_dir: str = Field(
        default="./raw-videos",
        alias="INTAKE_DIR",
        description="Local directory for downloaded raw videos",
    )
    output_dir: str = Field(
        default="./processed-videos",
        alias="OUTPUT_DIR",
        description="Local directory for transcoded renditions",
    )

    # Transcoding
    ffmpeg_binary: str = Field(
        default="ffmpeg",
        alias="FFMPEG_BINARY",
        description="FFmpeg executable name or path",
    )
    rendition_height: int = Field(
        default=360,
        ge=2,
        le=4320,
        alias="RENDITION_HEIGHT",
        description="Vertical resolution of the output rendition",
    )
    transcode_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        alias="TRANSCODE_TIMEOUT_SECONDS",
        description="Kill FFmpeg after this many seconds (unset = no limit)",
    )

    # Store client behaviour
    store_connect_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        alias="STORE_CONNECT_TIMEOUT_SECONDS",
        description="botocore connect timeout",
    )
    store_read_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        alias="STORE_READ_TIMEOUT_SECONDS",
        description="botocore read timeout",
    )
    store_max_attempts: int = Field(
        default=1,
        ge=1,
        le=10,
        alias="STORE_MAX_ATTEMPTS",
        description="Total attempts per store call (1 disables retries)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )

    @field_validator("raw_bucket", "processed_bucket")
    @classmethod
    def validate_bucket_name(cls, v: str) -> str:
        """Ensure bucket names follow S3 naming rules."""
        if not BUCKET_NAME_PATTERN.match(v):
            raise ValueError(f"Invalid S3 bucket name: {v!r}")
        return v

    @field_validator("rendition_height")
    @classmethod
    def validate_even_height(cls, v: int) -> int:
        """H.264 requires even frame dimensions."""
        if v % 2:
            raise ValueError("Rendition height must be an even number")
        return v

    @model_validator(mode="after")
    def validate_distinct_locations(self) -> "Settings":
        """Raw and processed artifacts must never share a location."""
        if self.raw_bucket == self.processed_bucket:
            raise ValueError("RAW_VIDEO_BUCKET and PROCESSED_VIDEO_BUCKET must differ")
        if self.intake_dir == self.output_dir:
            raise ValueError("INTAKE_DIR and OUTPUT_DIR must differ")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "prod"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for the lifetime of the process.
    This is safe for Lambda because each invocation gets a fresh process
    or reuses a warm container with the same settings.

    Returns:
        Validated Settings instance

    Raises:
        ValidationError: If environment variables are invalid
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when environment variables change.
    """
    get_settings.cache_clear()

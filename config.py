"""Configuration management for tinylinks."""

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    """Application configuration."""

    # Store settings
    store_backend: str = Field(
        default="file",
        description="Record store backend: 'file' or 'redis'"
    )

    store_path: str = Field(
        default="data/shortened_urls.json",
        description="JSON file used by the file store"
    )

    redis_url: Optional[str] = Field(
        default=None,
        description="Redis connection URL for the redis store"
    )

    storage_key: str = Field(
        default="shortenedUrls",
        description="Key the record array is stored under in Redis"
    )

    # Server settings
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )

    port: int = Field(
        default=9200,
        description="Port to listen on"
    )

    # Short link settings
    base_url: str = Field(
        default="http://localhost:9200",
        description="Base URL for generating short URLs"
    )

    path_prefix: str = Field(
        default="",
        description="Path prefix for short URLs (e.g., '/s' for /s/abc123)"
    )

    short_code_lengths: List[int] = Field(
        default=[6, 7],
        description="Lengths a generated short code may have (one is picked per link)"
    )

    max_generation_attempts: int = Field(
        default=10,
        ge=1,
        description="Collisions tolerated when generating a short code"
    )

    default_validity_minutes: int = Field(
        default=30,
        gt=0,
        description="Validity used when a request does not give one"
    )

    max_urls_per_submission: int = Field(
        default=5,
        ge=1,
        description="Maximum URLs accepted in one creation request"
    )

    redirect_countdown_seconds: int = Field(
        default=3,
        ge=0,
        description="Seconds the redirect page waits before navigating"
    )

    geolocation_timeout_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Upper bound for one location lookup"
    )

    # Telemetry settings (optional)
    telemetry_url: Optional[str] = Field(
        default=None,
        description="Remote log endpoint; telemetry is disabled when unset"
    )

    telemetry_token: Optional[str] = Field(
        default=None,
        description="Bearer token for the remote log endpoint"
    )

    telemetry_stack: str = Field(
        default="backend",
        description="Stack name sent with telemetry events"
    )

    telemetry_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Upper bound for one telemetry delivery"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    log_file: Optional[str] = Field(
        default=None,
        description="Log file path (logs to stdout if not specified)"
    )

    log_json: bool = Field(
        default=False,
        description="Use JSON format for logs"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",  # Ignore extra environment variables
    }

    @field_validator("store_backend")
    @classmethod
    def validate_store_backend(cls, v: str) -> str:
        v = v.lower()
        if v not in ("file", "redis"):
            raise ValueError("store_backend must be 'file' or 'redis'")
        return v

    @field_validator("short_code_lengths")
    @classmethod
    def validate_short_code_lengths(cls, v: List[int]) -> List[int]:
        if not v or any(length < 3 or length > 20 for length in v):
            raise ValueError("short_code_lengths must be between 3 and 20")
        return v


def load_config() -> Config:
    """Load configuration from environment."""
    return Config()

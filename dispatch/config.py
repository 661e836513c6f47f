"""
Dispatch Configuration
Centralized settings for queue dispatch, admission control and batching.

Values come from DISPATCH_* environment variables (or a .env file) and are
validated with Pydantic Settings.
"""
import logging
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class DispatchSettings(BaseSettings):
    """Validated dispatch configuration."""

    # Notification batching
    batch_size: int = 10
    flush_interval_seconds: float = 5.0

    # Admission control (token bucket per caller)
    bucket_capacity: int = 10
    bucket_refill_rate: float = 1.0  # tokens per second

    # Retry helper (base delay 1000 ms)
    max_retries: int = 5
    retry_base_delay_seconds: float = 1.0

    # Lookup cache
    cache_capacity: int = 100

    log_level: str = "INFO"

    @field_validator(
        'batch_size', 'bucket_capacity', 'max_retries', 'cache_capacity'
    )
    @classmethod
    def validate_positive(cls, v: int, info) -> int:
        """Sizes and counts must be at least one."""
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator('flush_interval_seconds', 'retry_base_delay_seconds', 'bucket_refill_rate')
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:
        if v < 0:
            raise ValueError(f"{info.field_name} cannot be negative")
        return v

    model_config = {
        "env_prefix": "DISPATCH_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


_settings: Optional[DispatchSettings] = None


def get_settings() -> DispatchSettings:
    """
    Get the process-wide settings instance.

    Loaded lazily so tests can set environment variables first.
    """
    global _settings
    if _settings is None:
        _settings = DispatchSettings()
        logger.debug(f"Loaded dispatch settings: {_settings.model_dump()}")
    return _settings


def reset_settings_for_tests() -> None:
    """Reset singleton for test isolation."""
    global _settings
    _settings = None

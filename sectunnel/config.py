"""
Configuration management for sectunnel.
"""

import logging
from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Tunnel settings loaded from environment variables."""

    # Relay
    relay_buffer_size: int = 16 * 1024  # bytes
    liveness_interval: float = 2.0  # seconds between liveness notifications

    # Connection wrapper
    digest_algorithm: str = "sha1"
    cipher_algorithm: str = "chacha20"

    # Socket tuning: negative = unchanged, 0 = disable, positive = enable
    keep_alive: int = 1
    no_delay: int = 1

    # Sessions
    session_idle_timeout: int = 600  # seconds

    # Logging
    log_level: str = "INFO"

    model_config = {
        "env_prefix": "SECTUNNEL_",
        "env_file": ".env",
        "extra": "ignore"
    }

    @field_validator("relay_buffer_size")
    @classmethod
    def _positive_buffer(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("relay_buffer_size must be positive")
        return value

    @field_validator("liveness_interval")
    @classmethod
    def _non_negative_interval(cls, value: float) -> float:
        if value < 0:
            raise ValueError("liveness_interval must not be negative")
        return value


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    logging.getLogger("sectunnel.config").debug(
        f"Settings loaded (buffer={settings.relay_buffer_size}, "
        f"cipher={settings.cipher_algorithm}, digest={settings.digest_algorithm})"
    )
    return settings

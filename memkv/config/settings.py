"""
memkv Configuration Settings

This module contains all configuration defaults for memkv stores.
Every value can be overridden from the environment, and every store
constructor argument overrides the corresponding setting.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Store configuration settings."""

    # TTL settings (seconds)
    DEFAULT_TTL: float = float(os.environ.get("MEMKV_DEFAULT_TTL", "0"))  # 0 means no expiration
    SWEEP_INTERVAL: float = float(os.environ.get("MEMKV_SWEEP_INTERVAL", "60"))  # 0 disables the sweeper

    # Key derivation
    COPY_SUFFIX: str = os.environ.get("MEMKV_COPY_SUFFIX", "_copy")

    # Sharding
    NUM_SHARDS: int = int(os.environ.get("MEMKV_NUM_SHARDS", "16"))

    # Logging settings
    DEBUG: bool = os.environ.get("MEMKV_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("MEMKV_LOG_LEVEL", "INFO")


# Global settings instance
settings = Settings()

"""Configuration module for memkv."""

from .logging import setup_logging
from .settings import Settings, settings

__all__ = ["Settings", "settings", "setup_logging"]

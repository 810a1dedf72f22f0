"""Logging setup for applications embedding memkv."""

import logging
import sys
from typing import Optional

from .settings import settings

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(debug: Optional[bool] = None, level: Optional[str] = None) -> None:
    """
    Configure root logging for memkv.

    Library modules only create loggers; nothing is configured at import.
    Call this once from the embedding application.

    Args:
        debug: Force DEBUG level (default from settings.DEBUG)
        level: Level name used when not in debug mode (default settings.LOG_LEVEL)
    """
    debug = settings.DEBUG if debug is None else debug
    if debug:
        resolved = logging.DEBUG
    else:
        resolved = logging.getLevelName((level or settings.LOG_LEVEL).upper())
        if not isinstance(resolved, int):
            raise ValueError(f"Unknown log level: {level or settings.LOG_LEVEL}")

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
        force=True,
    )

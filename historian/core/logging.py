"""Diagnostic logging setup (the channel log itself never goes through here)."""

import sys

from loguru import logger

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def setup_logging(level: str = "INFO") -> int:
    """Replace loguru's default sink with one stderr sink at ``level``."""
    logger.remove()
    return logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT, diagnose=False)

"""Logging setup (loguru)."""

import sys

from loguru import logger

from src.core.config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(settings: Settings) -> None:
    """Replace loguru's default sink with the configured ones."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=settings.log_level)
    if settings.log_file:
        logger.add(
            settings.log_file, rotation="100 MB", retention="30 days", level="DEBUG"
        )

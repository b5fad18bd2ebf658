"""Process-wide logger setup for the link shortener."""

import logging

from shortlinks.config import Settings

__all__ = ["LOGGER_NAME", "LOG_FORMAT", "setup_logger"]

LOGGER_NAME = "shortlinks"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logger(settings: Settings) -> logging.Logger:
    """Attach a stream handler to the ``shortlinks`` logger once."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(settings.LOG_LEVEL.upper())
    return logger

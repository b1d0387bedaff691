"""
Centralized logging configuration.

Usage:
    from logging_config.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Loaded 16 category options")
    logger.debug("Only shows when VERBOSE=true")
"""
import logging
import sys
from config.settings import LOG_LEVEL, VERBOSE, LOG_FORMAT, LOG_DATE_FORMAT


def _effective_level() -> int:
    """VERBOSE wins over LOG_LEVEL; unknown level names fall back to INFO."""
    if VERBOSE:
        return logging.DEBUG
    return getattr(logging, LOG_LEVEL.upper(), logging.INFO)


def get_logger(name: str) -> logging.Logger:
    """
    Get configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        level = _effective_level()
        logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        )
        logger.addHandler(console_handler)

        # Prevent propagation to root logger
        logger.propagate = False

    return logger

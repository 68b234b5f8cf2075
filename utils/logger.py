"""
utils/logger.py
Simple logging wrapper for NetSweep
"""

import logging
import sys


def get_logger(name: str, level: int = logging.INFO) -> logging.Logger:
    """
    Get a configured logger instance.

    Loggers below the "netsweep" namespace share the root project handler,
    so only top-level names get a handler of their own.

    Args:
        name: Logger name (usually "netsweep.<component>")
        level: Logging level (default: INFO)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Children propagate to the "netsweep" logger
    if "." in name:
        return logger

    # Avoid duplicate handlers
    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    # Format: [LEVEL] message
    formatter = logging.Formatter(
        '%(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def set_level(level: int) -> None:
    """Adjust the project logger and its handlers (used by --quiet / -v)."""
    logger = logging.getLogger("netsweep")
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


# Default logger instance
log = get_logger("netsweep")


__all__ = ["get_logger", "set_level", "log"]

"""Structured logging configuration for sitegen."""

from __future__ import annotations

import logging
import sys

LOGGER_PREFIX = "sitegen"


def setup_logging(
    level: int = logging.INFO,
    module_name: str = LOGGER_PREFIX,
) -> logging.Logger:
    """Configure and return a logger with consistent formatting.

    Args:
        level: Logging level (default INFO).
        module_name: Name for the logger instance.

    Returns:
        Configured logger.
    """
    logger = logging.getLogger(module_name)

    if logger.handlers:
        return logger

    logger.setLevel(level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)

    return logger


def set_level(level: int) -> None:
    """Change the level of every sitegen logger created so far."""
    for name, logger in logging.root.manager.loggerDict.items():
        if not isinstance(logger, logging.Logger):
            continue
        if name != LOGGER_PREFIX and not name.startswith(LOGGER_PREFIX + "."):
            continue
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

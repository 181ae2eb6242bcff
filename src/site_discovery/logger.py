"""
Centralized logging configuration for site-discovery
"""
from __future__ import annotations

import logging
import sys
from typing import Optional

ROOT_LOGGER_NAME = "site_discovery"

# Package root logger, configured once
_root_logger: Optional[logging.Logger] = None


def _configure_root() -> logging.Logger:
    global _root_logger

    if _root_logger is None:
        _root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        _root_logger.setLevel(logging.INFO)

        # Avoid adding handlers multiple times
        if not _root_logger.handlers:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.INFO)

            # Format: [LEVEL] message
            formatter = logging.Formatter(
                "[%(levelname)s] %(message)s",
                datefmt="%H:%M:%S"
            )
            console_handler.setFormatter(formatter)

            _root_logger.addHandler(console_handler)

    return _root_logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """
    Get a logger under the package root logger.

    Args:
        name: Module name (``__name__``). Names outside the package are
              nested under it so they share the console handler.

    Returns:
        Configured logger instance
    """
    root = _configure_root()
    if name == ROOT_LOGGER_NAME:
        return root
    if not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def set_log_level(level: int | str) -> None:
    """
    Set the package log level.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
               or integer level
    """
    logger = _configure_root()
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)

"""
Logging utilities for the ordertax engine and its command-line tool.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "ordertax"


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    format_string: Optional[str] = None,
) -> logging.Logger:
    """
    Set up logging for the package.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        format_string: Custom format string for log messages

    Returns:
        The configured package root logger
    """
    log_level = level or "INFO"
    level_num = getattr(logging, log_level.upper(), logging.INFO)

    if format_string is None:
        format_string = (
            "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
        )
    formatter = logging.Formatter(format_string)

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level_num)

    # Repeated setup (tests, CLI re-entry) must not stack handlers
    logger.handlers.clear()

    # Console goes to stderr so that JSON printed on stdout stays parseable
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level_num)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(level_num)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger below the package root.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")

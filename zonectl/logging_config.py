#!/usr/bin/env python3
"""
Logging setup for zonectl.

Warnings and errors are rendered as ``WARNING: ...`` / ``ERROR: ...`` on
stderr so they read like the rest of the tool's output.
"""

import logging
import sys

from colorama import Fore, Style


class ConsoleFormatter(logging.Formatter):
    """Level-prefixed, coloured console output."""

    COLORS = {
        logging.DEBUG: Style.DIM,
        logging.INFO: "",
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"

        if record.levelno >= logging.WARNING:
            message = f"{record.levelname}: {message}"
        elif record.levelno == logging.DEBUG:
            message = f"[{record.name}] {message}"

        color = self.COLORS.get(record.levelno, "") if self.use_color else ""
        if color:
            return f"{color}{message}{Style.RESET_ALL}"
        return message


def setup_logging(level: str = "WARNING", stream=None) -> logging.Handler:
    """
    Configures the ``zonectl`` logger.

    Args:
        level: Logging level name (e.g. "INFO", "DEBUG")
        stream: Output stream, stderr by default

    Returns:
        The installed console handler
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.WARNING

    logger = logging.getLogger("zonectl")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    stream = sys.stderr if stream is None else stream
    handler = logging.StreamHandler(stream)
    handler.setLevel(log_level)
    handler.setFormatter(ConsoleFormatter(use_color=_isatty(stream)))
    logger.addHandler(handler)

    logger.debug("Logging configured. Level: %s", logging.getLevelName(log_level))
    return handler


def _isatty(stream) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False

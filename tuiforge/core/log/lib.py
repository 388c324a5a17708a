"""Core logging implementation for tui-forge."""

import logging
import sys
from typing import Optional

__all__ = ["get_logger", "parse_level", "setup_logging"]

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_level(value: str | int | None, default: int = logging.INFO) -> int:
    """Resolve a level name or number to a logging level.

    Args:
        value: Level name ("debug", "WARNING") or numeric level.
        default: Level used when the value is empty or unknown.

    Returns:
        Numeric logging level.
    """
    if value is None or value == "":
        return default
    if isinstance(value, int):
        return value
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else default


def setup_logging(level: int | str = logging.INFO, stream=sys.stderr) -> None:
    """Configure basic logging.

    Args:
        level: Logging level or level name.
        stream: Output stream.
    """
    logging.basicConfig(
        level=parse_level(level),
        format=LOG_FORMAT,
        stream=stream,
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Name of the logger.

    Returns:
        Logger instance.
    """
    return logging.getLogger(name or "tuiforge")

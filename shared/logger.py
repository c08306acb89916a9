"""Logging setup shared by all tools."""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Logs go to stderr; stdout is reserved for tool output.
_console = Console(stderr=True)

ROOT_LOGGER_NAMES = ("tools", "shared")


def setup_logger(name: Optional[str] = None, level: str = "INFO") -> logging.Logger:
    """
    Configure rich logging for a tool.

    Args:
        name: Logger name (usually ``__name__`` of the CLI module)
        level: Log level name, e.g. "DEBUG" or "INFO"

    Returns:
        Configured logger
    """
    handler = RichHandler(console=_console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(message)s"))

    for root_name in ROOT_LOGGER_NAMES:
        root = logging.getLogger(root_name)
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False

    logger = logging.getLogger(name)
    logger.setLevel(level)
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a module logger; handlers are attached by setup_logger."""
    return logging.getLogger(name)

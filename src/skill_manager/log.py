"""Logging setup for the skill manager."""

import logging

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "skill_manager"


def setup_logging(level: str = "WARNING") -> None:
    """Route skill_manager logs to stderr through rich.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))

    # Replace handlers so repeated calls (tests, nested CLI runs) don't stack
    logger.handlers.clear()
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(handler)
    logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (usually called with __name__)."""
    return logging.getLogger(name)

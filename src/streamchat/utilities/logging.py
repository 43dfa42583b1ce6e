"""Logging utilities for streamchat."""

import logging
from typing import Literal

# Namespace logger for all streamchat logging; the root logger is left alone.
_LOGGER_NAME = "streamchat"

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


def configure_logging(level: LogLevel = "INFO") -> None:
    """Configure logging for streamchat.

    Configures only the ``streamchat`` namespace logger so that application-level
    logging configuration is not overridden. Uvicorn's own loggers keep their
    handlers.

    Args:
        level: The log level to use.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)

    # Avoid adding duplicate handlers on repeated calls.
    if logger.handlers:
        return

    from rich.console import Console
    from rich.logging import RichHandler

    logger.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True))

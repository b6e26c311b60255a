"""Logging setup shared by the CLI and the build pipeline."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from hashpress.config.models import LoggingSettings

LOG_FILENAME = "hashpress.log"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_NOISY_LOGGERS = ("dspy", "LiteLLM", "litellm", "httpx", "httpcore", "openai")
_HANDLER_MARKER = "_hashpress_handler"


def configure_logging(
    settings: LoggingSettings,
    *,
    state_dir: Optional[Path] = None,
    verbose: bool = False,
    quiet: bool = False,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Install console and rotating file handlers on the ``hashpress`` logger.

    Calling this more than once replaces the handlers installed by an earlier
    call, so repeated CLI invocations inside one process do not duplicate output.

    Args:
        settings: Logging configuration (level and rotation policy).
        state_dir: Build state directory receiving ``hashpress.log``; no file
            handler is installed when omitted.
        verbose: Lower the console level to DEBUG.
        quiet: Raise the console level to ERROR unless ``verbose`` is set.
        console: Optional rich console used by the console handler.

    Returns:
        logging.Logger: The configured package logger.
    """
    logger = logging.getLogger("hashpress")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()

    level = logging.DEBUG if verbose else _coerce_level(settings.level)
    logger.setLevel(logging.DEBUG)

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=verbose,
    )
    console_handler.setLevel(logging.ERROR if quiet and not verbose else level)
    setattr(console_handler, _HANDLER_MARKER, True)
    logger.addHandler(console_handler)

    if state_dir is not None:
        state_dir.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            state_dir / LOG_FILENAME,
            maxBytes=settings.max_size_mb * 1024 * 1024,
            backupCount=settings.backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(min(level, _coerce_level(settings.level)))
        file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
        setattr(file_handler, _HANDLER_MARKER, True)
        logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger


def _coerce_level(value: str) -> int:
    level = logging.getLevelName(value.upper())
    if isinstance(level, int):
        return level
    return logging.INFO


__all__ = ["LOG_FILENAME", "configure_logging"]

"""Logging configuration tests."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from hashpress.config.models import LoggingSettings
from hashpress.logs import LOG_FILENAME, configure_logging


def _installed(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if getattr(handler, "_hashpress_handler", False)]


def test_configure_logging_writes_state_log(tmp_path: Path) -> None:
    state_dir = tmp_path / ".hashpress"
    logger = configure_logging(LoggingSettings(level="INFO"), state_dir=state_dir, quiet=True)
    try:
        logging.getLogger("hashpress.tests").info("registry saved")
        for handler in logger.handlers:
            handler.flush()

        assert "registry saved" in (state_dir / LOG_FILENAME).read_text(encoding="utf-8")
    finally:
        for handler in _installed(logger):
            logger.removeHandler(handler)
            handler.close()


def test_repeated_configuration_replaces_handlers(tmp_path: Path) -> None:
    settings = LoggingSettings()
    configure_logging(settings, state_dir=tmp_path)
    logger = configure_logging(settings, state_dir=tmp_path, verbose=True)
    try:
        handlers = _installed(logger)
        assert len(handlers) == 2
        assert sum(isinstance(handler, RotatingFileHandler) for handler in handlers) == 1
        assert logging.getLogger("litellm").level == logging.WARNING
    finally:
        for handler in _installed(logger):
            logger.removeHandler(handler)
            handler.close()


def test_console_only_without_state_dir() -> None:
    logger = configure_logging(LoggingSettings(), quiet=True)
    try:
        handlers = _installed(logger)
        assert len(handlers) == 1
        assert handlers[0].level == logging.ERROR
    finally:
        for handler in _installed(logger):
            logger.removeHandler(handler)
            handler.close()

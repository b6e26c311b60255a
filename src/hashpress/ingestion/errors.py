"""Errors raised while discovering and reading source documents."""

from __future__ import annotations

from pathlib import Path


class ScanError(Exception):
    """Raised when the source root cannot be scanned at all."""


class RecordIOError(Exception):
    """Raised when a single document cannot be read or written."""

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = str(path)

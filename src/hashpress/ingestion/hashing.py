"""Content hashing utilities."""

from __future__ import annotations

import hashlib
from pathlib import Path

from .errors import RecordIOError


def hash_bytes(data: bytes) -> str:
    """Return the SHA-256 hex digest of ``data``."""
    return hashlib.sha256(data).hexdigest()


def hash_text(text: str) -> str:
    """Return the SHA-256 hex digest of ``text`` encoded as UTF-8."""
    return hash_bytes(text.encode("utf-8"))


class HashComputer:
    """Read documents and compute their content hashes."""

    def read(self, path: Path) -> bytes:
        """Return the raw bytes of ``path``.

        Raises:
            RecordIOError: If the file cannot be read.
        """
        try:
            return path.read_bytes()
        except OSError as exc:
            raise RecordIOError(path, exc.strerror or str(exc)) from exc

    def compute(self, path: Path) -> str:
        """Return the SHA-256 hex digest of the file contents."""
        return hash_bytes(self.read(path))


__all__ = ["HashComputer", "hash_bytes", "hash_text"]

"""Source document discovery backed by git."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Protocol

LOGGER = logging.getLogger(__name__)


class FileLister(Protocol):
    """List candidate files of a source tree."""

    def list_tracked_and_untracked(self, root: Path) -> list[str]:
        """Return root-relative POSIX paths of tracked and untracked, non-ignored files."""
        ...


class GitFileLister:
    """List files known to git (tracked plus untracked but not ignored)."""

    def __init__(self, git_executable: str = "git") -> None:
        self._git = git_executable

    def list_tracked_and_untracked(self, root: Path) -> list[str]:
        """Return the files git would consider part of the work tree.

        Args:
            root: Directory to list; must be inside a git work tree.

        Returns:
            list[str]: Root-relative POSIX paths, or an empty list when git is
            unavailable or ``root`` is not a work tree.
        """
        command = [
            self._git,
            "-C",
            str(root),
            "ls-files",
            "--others",
            "--cached",
            "--exclude-standard",
            "-z",
        ]
        try:
            result = subprocess.run(command, capture_output=True, check=False)
        except OSError as exc:
            LOGGER.warning("Unable to run git in %s: %s", root, exc)
            return []
        if result.returncode != 0:
            stderr = result.stderr.decode("utf-8", errors="replace").strip()
            LOGGER.warning("git ls-files failed in %s: %s", root, stderr or result.returncode)
            return []

        output = result.stdout.decode("utf-8", errors="surrogateescape")
        seen: set[str] = set()
        paths: list[str] = []
        for item in output.split("\0"):
            if item and item not in seen:
                seen.add(item)
                paths.append(item)
        return paths


__all__ = ["FileLister", "GitFileLister"]

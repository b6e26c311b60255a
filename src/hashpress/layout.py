"""Paths of the persisted build state beneath a source root."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from hashpress.languages import is_language_code

DEFAULT_STATE_DIRNAME = ".hashpress"
REGISTRY_FILENAME = "registry.json"
ARTIFACTS_DIRNAME = "src"


class LayoutError(ValueError):
    """Raised when the state directory would overlap the source documents."""


@dataclass(frozen=True)
class BuildLayout:
    """Resolve the on-disk locations used by a build.

    Attributes:
        root: Source root containing the markdown documents.
        state_dir: Directory holding the registry, artifacts and log file.
    """

    root: Path
    state_dir: Path

    @classmethod
    def for_root(
        cls,
        root: Path,
        *,
        state_dirname: str = DEFAULT_STATE_DIRNAME,
        state_dir: Path | None = None,
    ) -> "BuildLayout":
        """Return the layout for ``root``.

        Args:
            root: Source root directory.
            state_dirname: Name of the state directory relative to ``root``.
            state_dir: Explicit state directory overriding ``state_dirname``.

        Returns:
            BuildLayout: Layout with resolved absolute paths.

        Raises:
            LayoutError: If the state directory is the source root or one of
                its ancestors.
        """
        resolved_root = root.expanduser().resolve()
        if state_dir is None:
            directory = resolved_root / state_dirname
        else:
            directory = state_dir.expanduser()
            if not directory.is_absolute():
                directory = resolved_root / directory
        directory = directory.resolve()
        if directory == resolved_root or directory in resolved_root.parents:
            raise LayoutError(
                f"State directory {directory} must not contain the source root {resolved_root}"
            )
        return cls(root=resolved_root, state_dir=directory)

    @property
    def registry_path(self) -> Path:
        return self.state_dir / REGISTRY_FILENAME

    @property
    def artifacts_dir(self) -> Path:
        return self.state_dir / ARTIFACTS_DIRNAME

    def artifact_path(self, language: str, content_hash: str) -> Path:
        """Return the artifact path of a document in ``language``.

        Raises:
            ValueError: If ``language`` is not a language code.
        """
        if not is_language_code(language):
            raise ValueError(f"Invalid language code {language!r}")
        return self.artifacts_dir / language / f"{content_hash}.md"

    def source_path(self, relative_path: str) -> Path:
        """Return the absolute path of a source-relative POSIX path."""
        return self.root / relative_path

    def state_prefix(self) -> str | None:
        """Return the state directory as a root-relative POSIX prefix.

        Returns:
            str | None: Prefix such as ``.hashpress/`` or ``None`` when the
            state directory lives outside the source root.
        """
        try:
            relative = self.state_dir.relative_to(self.root)
        except ValueError:
            return None
        return relative.as_posix().rstrip("/") + "/"


__all__ = [
    "ARTIFACTS_DIRNAME",
    "BuildLayout",
    "DEFAULT_STATE_DIRNAME",
    "LayoutError",
    "REGISTRY_FILENAME",
]

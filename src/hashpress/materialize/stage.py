"""Materialization stage: write native documents with front-matter and hash links."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from hashpress.ingestion.errors import RecordIOError
from hashpress.ingestion.hashing import HashComputer, hash_bytes, hash_text
from hashpress.layout import BuildLayout
from hashpress.registry import Registry
from hashpress.registry.models import RegistryEntry
from hashpress.reports import StageReport
from hashpress.workers import fan_out

from .frontmatter import replace_frontmatter
from .links import rewrite_links

LOGGER = logging.getLogger(__name__)

_ARTIFACT_STEM = re.compile(r"[0-9a-f]{64}")


@dataclass(frozen=True)
class MaterializedDocument:
    """Outcome of materializing one entry.

    Attributes:
        materialized_hash: Hash of the native document text.
        written: Whether the artifact file was (re)written.
        unresolved: Link targets that could not be rewritten.
    """

    materialized_hash: str
    written: bool
    unresolved: tuple[str, ...] = ()


def write_if_changed(path: Path, text: str) -> bool:
    """Write ``text`` to ``path`` unless the file already holds exactly that text.

    Returns:
        bool: Whether the file was written.

    Raises:
        RecordIOError: If the file cannot be written.
    """
    encoded = text.encode("utf-8")
    try:
        if path.is_file() and path.read_bytes() == encoded:
            return False
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encoded)
    except OSError as exc:
        raise RecordIOError(path, exc.strerror or str(exc)) from exc
    return True


class MaterializeStage:
    """Produce the native document of every enriched entry."""

    def __init__(
        self,
        registry: Registry,
        layout: BuildLayout,
        *,
        link_scheme: str = "hashpress",
        extension: str = ".md",
        concurrency: int = 4,
        prune_artifacts: bool = True,
    ) -> None:
        self._registry = registry
        self._layout = layout
        self._link_scheme = link_scheme
        self._extension = extension
        self._concurrency = concurrency
        self._prune_artifacts = prune_artifacts
        self._reader = HashComputer()
        self._paths: dict[str, Optional[str]] = {}

    def run(self) -> StageReport:
        """Materialize enriched entries and prune stale artifacts.

        Returns:
            StageReport: Written, unchanged and failed counts.
        """
        report = StageReport(stage="materialize")
        self._paths = {entry.path: entry.hash for entry in self._registry.entries}
        pending = [entry for entry in self._registry.entries if entry.metadata is not None]
        report.bump("unenriched", len(self._registry) - len(pending))

        for entry, future in fan_out(pending, self._materialize, max_workers=self._concurrency):
            try:
                document = future.result()
            except RecordIOError as exc:
                LOGGER.warning("stage=materialize path=%s hash=%s: %s", entry.path, entry.hash, exc)
                report.record_failure(f"materialize {entry.path}: {exc}")
                continue
            if entry.materialized_hash != document.materialized_hash:
                self._registry.set_materialized_hash(entry.hash, document.materialized_hash)
            if document.unresolved:
                report.bump("unresolved_links", len(document.unresolved))
            if document.written:
                report.processed += 1
            else:
                report.skipped += 1

        if self._prune_artifacts:
            report.bump("pruned", self.prune())
        return report

    def prune(self) -> int:
        """Delete artifacts whose hash is no longer registered.

        Only files named after a content hash are considered; anything else
        under the artifact tree is left in place.

        Returns:
            int: Number of removed files.
        """
        artifacts = self._layout.artifacts_dir
        if not artifacts.is_dir():
            return 0
        removed = 0
        for language_dir in artifacts.iterdir():
            if not language_dir.is_dir():
                continue
            for artifact in language_dir.glob("*.md"):
                if not _ARTIFACT_STEM.fullmatch(artifact.stem) or artifact.stem in self._registry:
                    continue
                try:
                    artifact.unlink()
                except OSError as exc:
                    LOGGER.warning("Unable to prune %s: %s", artifact, exc)
                    continue
                removed += 1
                LOGGER.debug("Pruned %s", artifact)
        return removed

    def _lookup(self, relative: str) -> Optional[str]:
        """Return the registered hash of the document at ``relative``.

        Paths that are not the recorded path of an entry (such as a duplicate
        of another document's content) are hashed from disk.
        """
        if relative in self._paths:
            return self._paths[relative]
        source = self._layout.source_path(relative)
        content_hash: Optional[str] = None
        if source.is_file():
            try:
                candidate = hash_bytes(self._reader.read(source))
            except RecordIOError as exc:
                LOGGER.debug("Unable to hash link target %s: %s", relative, exc)
            else:
                content_hash = candidate if candidate in self._registry else None
        self._paths[relative] = content_hash
        return content_hash

    def _materialize(self, entry: RegistryEntry) -> MaterializedDocument:
        metadata = entry.metadata
        if metadata is None:
            raise RecordIOError(entry.path, "entry has no metadata to materialize")
        data = self._reader.read(self._layout.source_path(entry.path))
        content = data.decode("utf-8", errors="replace")
        rewritten, unresolved = rewrite_links(
            content,
            entry.path,
            self._lookup,
            scheme=self._link_scheme,
            extension=self._extension,
        )
        native = replace_frontmatter(rewritten, metadata)
        destination = self._layout.artifact_path(metadata.inferred_language, entry.hash)
        written = write_if_changed(destination, native)
        return MaterializedDocument(
            materialized_hash=hash_text(native),
            written=written,
            unresolved=tuple(unresolved),
        )


__all__ = ["MaterializeStage", "MaterializedDocument", "write_if_changed"]

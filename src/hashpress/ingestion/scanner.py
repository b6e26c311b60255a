"""Reconcile the source tree with the registry."""

from __future__ import annotations

import logging
import os
from collections import deque
from typing import Optional

from hashpress.layout import BuildLayout
from hashpress.registry import Registry
from hashpress.reports import StageReport

from .discovery import FileLister, GitFileLister
from .errors import RecordIOError, ScanError
from .hashing import HashComputer, hash_bytes
from .links import escapes_root, extract_links, is_external, resolve_link

LOGGER = logging.getLogger(__name__)


class Scanner:
    """Discover source documents and bring the registry in line with them.

    Every eligible file is hashed; known hashes are moved to their current
    path, unknown hashes become new entries, and entries whose hash no file
    produced any more are evicted. Running the scanner twice over an unchanged
    tree leaves the registry unchanged.
    """

    def __init__(
        self,
        registry: Registry,
        layout: BuildLayout,
        *,
        lister: Optional[FileLister] = None,
        extension: str = ".md",
        follow_links: bool = True,
        hasher: Optional[HashComputer] = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            registry: Registry updated in place.
            layout: Build layout describing the source root and state directory.
            lister: File lister used to enumerate candidates (git by default).
            extension: Extension of eligible documents.
            follow_links: Also scan unlisted documents reachable through relative links.
            hasher: Reader used to load document bytes.
        """
        self._registry = registry
        self._layout = layout
        self._lister = lister or GitFileLister()
        self._extension = extension.lower()
        self._follow_links = follow_links
        self._hasher = hasher or HashComputer()

    def run(self) -> StageReport:
        """Scan the source root and reconcile the registry.

        Returns:
            StageReport: Counts of discovered, added, moved and evicted entries.

        Raises:
            ScanError: If the source root is missing, not a directory or unreadable.
        """
        root = self._layout.root
        if not root.is_dir():
            raise ScanError(f"Source root {root} does not exist or is not a directory")
        if not os.access(root, os.R_OK | os.X_OK):
            raise ScanError(f"Source root {root} cannot be read")
        try:
            next(root.iterdir(), None)
        except OSError as exc:
            raise ScanError(f"Source root {root} cannot be read: {exc}") from exc

        report = StageReport(stage="scan")
        listed = [
            path for path in self._lister.list_tracked_and_untracked(root) if self._eligible(path)
        ]
        if not listed:
            LOGGER.info("No %s documents listed under %s", self._extension, root)

        queue: deque[str] = deque(listed)
        queued: set[str] = set(listed)
        observations: dict[str, tuple[str, list[str]]] = {}
        kept: set[str] = set()

        while queue:
            relative = queue.popleft()
            absolute = self._layout.source_path(relative)
            if not absolute.is_file():
                LOGGER.debug("Skipping %s; listed but not present on disk", relative)
                continue
            report.bump("discovered")
            try:
                data = self._hasher.read(absolute)
            except RecordIOError as exc:
                LOGGER.warning("stage=scan path=%s: %s", relative, exc)
                report.record_failure(f"scan {relative}: {exc}")
                existing = self._registry.find_by_path(relative)
                if existing is not None:
                    kept.add(existing.hash)
                continue

            content_hash = hash_bytes(data)
            links = extract_links(data.decode("utf-8", errors="replace"))
            # Re-insert so the last processed path wins for duplicate content.
            observations.pop(content_hash, None)
            observations[content_hash] = (relative, links)

            if self._follow_links:
                for target in self._link_targets(relative, links):
                    if target not in queued:
                        queued.add(target)
                        queue.append(target)
                        report.bump("followed")

        evicted = self._registry.evict_unobserved(set(observations) | kept)
        for entry in evicted:
            LOGGER.info("Evicted %s (%s)", entry.path, entry.hash[:12])
        report.bump("evicted", len(evicted))

        for content_hash, (relative, links) in observations.items():
            if content_hash in self._registry:
                if self._registry.move(content_hash, relative, links):
                    LOGGER.info("Detected move of %s to %s", content_hash[:12], relative)
                    report.bump("moved")
                    report.processed += 1
                else:
                    report.skipped += 1
            else:
                self._registry.add(content_hash, relative, links)
                LOGGER.debug("Registered %s as %s", relative, content_hash[:12])
                report.bump("added")
                report.processed += 1

        self._registry.sort_entries()
        return report

    def _eligible(self, relative: str) -> bool:
        if not relative.lower().endswith(self._extension):
            return False
        prefix = self._layout.state_prefix()
        return prefix is None or not relative.startswith(prefix)

    def _link_targets(self, source: str, links: list[str]) -> list[str]:
        targets: list[str] = []
        for raw in links:
            if is_external(raw):
                continue
            resolved = resolve_link(source, raw)
            if resolved is None:
                if escapes_root(source, raw):
                    LOGGER.warning(
                        "Link %r in %s escapes the source root; ignoring", raw, source
                    )
                continue
            if not self._eligible(resolved.path):
                continue
            if self._layout.source_path(resolved.path).is_file():
                targets.append(resolved.path)
        return targets


__all__ = ["Scanner"]

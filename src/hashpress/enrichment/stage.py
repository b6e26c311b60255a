"""Enrichment stage: attach metadata to entries that lack it."""

from __future__ import annotations

import logging

from hashpress.ingestion.errors import RecordIOError
from hashpress.ingestion.hashing import HashComputer
from hashpress.layout import BuildLayout
from hashpress.llm.errors import ExtractionError
from hashpress.registry import Registry
from hashpress.registry.models import DocumentMetadata, RegistryEntry
from hashpress.reports import StageReport
from hashpress.workers import fan_out

from .engine import MetadataExtractor

LOGGER = logging.getLogger(__name__)


class EnrichmentStage:
    """Extract metadata for every registry entry that has none yet."""

    def __init__(
        self,
        registry: Registry,
        layout: BuildLayout,
        extractor: MetadataExtractor,
        *,
        concurrency: int = 4,
    ) -> None:
        self._registry = registry
        self._layout = layout
        self._extractor = extractor
        self._concurrency = concurrency
        self._reader = HashComputer()

    def run(self) -> StageReport:
        """Enrich pending entries.

        Returns:
            StageReport: Enriched, skipped (already enriched) and failed counts.
        """
        report = StageReport(stage="enrich")
        pending: list[RegistryEntry] = []
        for entry in self._registry.entries:
            if entry.metadata is not None:
                report.skipped += 1
            else:
                pending.append(entry)

        if not pending:
            LOGGER.info("All %d entries already enriched", report.skipped)
            return report

        LOGGER.info("Enriching %d documents", len(pending))
        for entry, future in fan_out(pending, self._extract, max_workers=self._concurrency):
            try:
                metadata = future.result()
            except (RecordIOError, ExtractionError) as exc:
                LOGGER.warning("stage=enrich path=%s hash=%s: %s", entry.path, entry.hash, exc)
                report.record_failure(f"enrich {entry.path}: {exc}")
                continue
            self._registry.set_metadata(entry.hash, metadata)
            report.processed += 1
            report.bump("tokens", metadata.tokens_used.total)
            LOGGER.debug("Enriched %s as %r", entry.path, metadata.title)
        return report

    def _extract(self, entry: RegistryEntry) -> DocumentMetadata:
        data = self._reader.read(self._layout.source_path(entry.path))
        return self._extractor.extract(data.decode("utf-8", errors="replace"))


__all__ = ["EnrichmentStage"]

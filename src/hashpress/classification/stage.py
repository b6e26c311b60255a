"""Categorization stage: assign one category label per enriched entry."""

from __future__ import annotations

import logging

from hashpress.llm.errors import ClassificationError
from hashpress.registry import Registry
from hashpress.reports import StageReport

from .engine import CategoryClassifier
from .models import ClassificationSubject

LOGGER = logging.getLogger(__name__)


class CategorizationStage:
    """Issue one batched classification call when any enriched entry lacks a label."""

    def __init__(self, registry: Registry, classifier: CategoryClassifier) -> None:
        self._registry = registry
        self._classifier = classifier

    def run(self) -> StageReport:
        """Categorize uncategorized entries.

        Returns:
            StageReport: Assigned, skipped and failed counts.
        """
        report = StageReport(stage="categorize")
        enriched = [entry for entry in self._registry.entries if entry.metadata is not None]
        uncategorized = [entry for entry in enriched if not entry.category]
        if not uncategorized:
            report.skipped = len(enriched)
            LOGGER.info("All enriched entries already categorized; skipping")
            return report

        categorized = [entry for entry in enriched if entry.category]
        existing_labels = sorted({entry.category for entry in categorized if entry.category})
        try:
            result = self._classifier.classify(
                existing_labels,
                [
                    ClassificationSubject(hash=e.hash, path=e.path, metadata=e.metadata)
                    for e in uncategorized
                    if e.metadata is not None
                ],
                [
                    ClassificationSubject(
                        hash=e.hash, path=e.path, metadata=e.metadata, category=e.category
                    )
                    for e in categorized
                    if e.metadata is not None
                ],
            )
        except ClassificationError as exc:
            LOGGER.warning("stage=categorize: %s", exc)
            report.failed = len(uncategorized)
            report.errors.append(f"categorize: {exc}")
            return report

        assigned: set[str] = set()
        for content_hash, label in result.mapping.items():
            entry = self._registry.find_by_hash(content_hash)
            if entry is None:
                LOGGER.debug("Ignoring category for unknown hash %s", content_hash)
                continue
            if entry.category != label:
                self._registry.set_category(content_hash, label)
            assigned.add(content_hash)

        report.processed = len(assigned)
        report.skipped = len(enriched) - len(uncategorized)
        report.bump("labels", len(result.labels))
        for entry in uncategorized:
            if entry.hash not in assigned:
                LOGGER.warning(
                    "stage=categorize path=%s hash=%s: no category returned", entry.path, entry.hash
                )
                report.bump("unassigned")
        return report


__all__ = ["CategorizationStage"]

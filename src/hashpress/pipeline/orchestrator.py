"""Run the build stages in order against one registry."""

from __future__ import annotations

import logging
from typing import Optional

from hashpress.classification import CategorizationStage, CategoryClassifier
from hashpress.config.models import HashpressConfig
from hashpress.enrichment import EnrichmentStage, MetadataExtractor
from hashpress.ingestion import FileLister, Scanner
from hashpress.layout import BuildLayout
from hashpress.materialize import MaterializeStage
from hashpress.registry import Registry
from hashpress.reports import BuildReport, StageReport
from hashpress.translation import DocumentTranslator, TranslationStage

LOGGER = logging.getLogger(__name__)


class BuildPipeline:
    """Scan, enrich, categorize, materialize and translate a source tree.

    The registry is persisted after the scan and after every following stage,
    so an interrupted build keeps the work of completed stages.
    """

    def __init__(
        self,
        config: HashpressConfig,
        layout: BuildLayout,
        registry: Registry,
        *,
        extractor: MetadataExtractor,
        classifier: CategoryClassifier,
        translator: DocumentTranslator,
        lister: Optional[FileLister] = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Resolved configuration.
            layout: Build layout of the source tree.
            registry: Loaded registry shared by every stage.
            extractor: Metadata extraction collaborator.
            classifier: Category classification collaborator.
            translator: Translation collaborator.
            lister: File lister for the scanner (git by default).
        """
        self._config = config
        self._layout = layout
        self._registry = registry
        self._extractor = extractor
        self._classifier = classifier
        self._translator = translator
        self._lister = lister

    @property
    def registry(self) -> Registry:
        return self._registry

    def run(self) -> BuildReport:
        """Run every stage once.

        Returns:
            BuildReport: One report per stage in execution order.

        Raises:
            ScanError: If the source root cannot be scanned.
        """
        build = self._config.build
        report = BuildReport()

        scanner = Scanner(
            self._registry,
            self._layout,
            lister=self._lister,
            extension=self._config.scan.extension,
            follow_links=self._config.scan.follow_links,
        )
        self._record(report, scanner.run())

        stages = (
            EnrichmentStage(
                self._registry,
                self._layout,
                self._extractor,
                concurrency=build.concurrency,
            ),
            CategorizationStage(self._registry, self._classifier),
            MaterializeStage(
                self._registry,
                self._layout,
                link_scheme=build.link_scheme,
                extension=self._config.scan.extension,
                concurrency=build.concurrency,
                prune_artifacts=build.prune_artifacts,
            ),
            TranslationStage(
                self._registry,
                self._layout,
                self._translator,
                build.languages,
                concurrency=build.concurrency,
            ),
        )
        for stage in stages:
            self._record(report, stage.run())
        return report

    def _record(self, report: BuildReport, stage_report: StageReport) -> None:
        report.stages.append(stage_report)
        written = self._registry.save(only_if_changed=True)
        LOGGER.info(
            "Stage %s: processed=%d skipped=%d failed=%d%s",
            stage_report.stage,
            stage_report.processed,
            stage_report.skipped,
            stage_report.failed,
            " (registry saved)" if written else "",
        )


__all__ = ["BuildPipeline"]

"""Translation stage: render every native document into the target languages."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

from hashpress.ingestion.errors import RecordIOError
from hashpress.ingestion.hashing import HashComputer, hash_bytes
from hashpress.languages import same_language
from hashpress.layout import BuildLayout
from hashpress.llm.errors import TranslationError
from hashpress.materialize.stage import write_if_changed
from hashpress.registry import Registry
from hashpress.registry.models import RegistryEntry, TranslationRecord
from hashpress.reports import StageReport
from hashpress.workers import fan_out

from .engine import DocumentTranslator

LOGGER = logging.getLogger(__name__)

TranslationJob = tuple[RegistryEntry, str]


class TranslationStage:
    """Translate native documents, reusing translations whose source is unchanged."""

    def __init__(
        self,
        registry: Registry,
        layout: BuildLayout,
        translator: DocumentTranslator,
        languages: Sequence[str],
        *,
        concurrency: int = 4,
    ) -> None:
        self._registry = registry
        self._layout = layout
        self._translator = translator
        self._languages = list(languages)
        self._concurrency = concurrency
        self._reader = HashComputer()

    def run(self) -> StageReport:
        """Translate every (entry, language) pair that is out of date.

        Returns:
            StageReport: Translated, cached/skipped and failed counts.
        """
        report = StageReport(stage="translate")
        if not self._languages:
            LOGGER.debug("No target languages configured; skipping translation")
            return report

        jobs: list[TranslationJob] = []
        for entry in self._registry.entries:
            if entry.metadata is None:
                continue
            for language in self._languages:
                if same_language(language, entry.metadata.inferred_language):
                    report.skipped += 1
                    report.bump("same_language")
                    continue
                jobs.append((entry, language))

        for (entry, language), future in fan_out(
            jobs, self._translate, max_workers=self._concurrency
        ):
            try:
                record = future.result()
            except (RecordIOError, TranslationError) as exc:
                LOGGER.warning(
                    "stage=translate path=%s hash=%s lang=%s: %s",
                    entry.path,
                    entry.hash,
                    language,
                    exc,
                )
                report.record_failure(f"translate {entry.path} [{language}]: {exc}")
                continue
            if record is None:
                report.skipped += 1
                report.bump("cached")
                continue
            self._registry.record_translation(entry.hash, language, record)
            report.processed += 1
            LOGGER.debug("Translated %s into %s", entry.path, language)
        return report

    def _translate(self, job: TranslationJob) -> Optional[TranslationRecord]:
        entry, language = job
        metadata = entry.metadata
        if metadata is None:
            raise RecordIOError(entry.path, "entry has no metadata to translate")

        native_path = self._layout.artifact_path(metadata.inferred_language, entry.hash)
        native = self._reader.read(native_path)
        native_hash = hash_bytes(native)

        destination = self._layout.artifact_path(language, entry.hash)
        previous = entry.translations.get(language)
        if destination.is_file() and previous is not None and previous.source_hash == native_hash:
            return None

        translated = self._translator.translate(native.decode("utf-8", errors="replace"), language)
        write_if_changed(destination, translated)
        return TranslationRecord(
            source_hash=native_hash,
            content_length=len(translated),
            translated_at=datetime.now(timezone.utc),
        )


__all__ = ["TranslationStage"]

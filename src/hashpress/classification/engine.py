"""Category classification built on top of DSPy.

The classifier sees every enriched document at once and returns a small shared
taxonomy together with one label per document hash.
"""

from __future__ import annotations

import json
import logging
from typing import Optional, Protocol, Sequence

import dspy
from pydantic import ValidationError

from hashpress.config.models import LLMSettings
from hashpress.llm import ClassificationError, configure_language_model

from .models import ClassificationResult, ClassificationSubject

LOGGER = logging.getLogger(__name__)


class CategoryClassifier(Protocol):
    """Assign category labels to documents in a single batched call."""

    def classify(
        self,
        existing_labels: Sequence[str],
        uncategorized: Sequence[ClassificationSubject],
        categorized: Sequence[ClassificationSubject],
    ) -> ClassificationResult:
        """Return the taxonomy and label mapping or raise ``ClassificationError``."""
        ...


class DSPyCategoryClassifier:
    """Produce the category taxonomy with a DSPy program."""

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        """Configure the language model and build the classification program.

        Args:
            settings: LLM configuration.
        """
        self._settings = settings or LLMSettings()
        configure_language_model(self._settings)
        self._program = self._build_program()

    def classify(
        self,
        existing_labels: Sequence[str],
        uncategorized: Sequence[ClassificationSubject],
        categorized: Sequence[ClassificationSubject],
    ) -> ClassificationResult:
        """Classify ``uncategorized`` documents, using the others as context.

        Args:
            existing_labels: Labels already in use.
            uncategorized: Documents that need a label.
            categorized: Documents that already carry a label.

        Returns:
            ClassificationResult: Taxonomy and hash-to-label mapping.

        Raises:
            ClassificationError: If the model call fails or the response is malformed.
        """
        documents = json.dumps(
            [_describe(subject) for subject in [*categorized, *uncategorized]],
            ensure_ascii=False,
        )
        try:
            prediction = self._program(
                existing_labels=list(existing_labels),
                documents=documents,
            )
        except Exception as exc:  # pragma: no cover - DSPy runtime errors
            LOGGER.debug("Categorization call failed: %s", exc)
            raise ClassificationError(f"Language model call failed: {exc}") from exc

        try:
            return ClassificationResult(
                labels=list(getattr(prediction, "categories", None) or []),
                mapping=dict(getattr(prediction, "mappings", None) or {}),
            )
        except (TypeError, ValueError, ValidationError) as exc:
            raise ClassificationError(f"Invalid categorization response: {exc}") from exc

    @staticmethod
    def _build_program():
        """Construct the DSPy program used for categorization."""

        class CategorySignature(dspy.Signature):  # type: ignore[misc]
            """Group documents into a small set of category labels.

            Read every document's title, summary and tags, then produce a list
            of distinct, concise English labels (a word or short phrase) that
            covers all documents. Prefer the existing labels where they fit.
            Each document gets exactly one label. Avoid categories holding
            fewer than two documents by merging them into related ones. Map
            every document hash to its label.
            """

            existing_labels: list[str] = dspy.InputField()
            documents: str = dspy.InputField(desc="JSON list of documents")
            categories: list[str] = dspy.OutputField()
            mappings: dict[str, str] = dspy.OutputField(desc="document hash to category label")

        return dspy.Predict(CategorySignature)


def _describe(subject: ClassificationSubject) -> dict[str, object]:
    metadata = subject.metadata
    return {
        "hash": subject.hash,
        "path": subject.path,
        "title": metadata.title,
        "summary": metadata.summary or metadata.description,
        "tags": metadata.tags,
        "category": subject.category,
    }


__all__ = ["CategoryClassifier", "DSPyCategoryClassifier"]

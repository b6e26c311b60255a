"""Metadata extraction built on top of DSPy.

The engine wraps a ``dspy.Predict`` program so the enrichment stage can request
document metadata without depending directly on DSPy. The structured output is
normalized and validated before it is handed back; a response that cannot be
turned into a complete ``DocumentMetadata`` raises ``ExtractionError``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Iterable, Optional, Protocol

import dspy
from pydantic import ValidationError

from hashpress.config.models import EnrichmentOptions, LLMSettings
from hashpress.languages import canonical_language
from hashpress.llm import ExtractionError, configure_language_model, usage_from_prediction
from hashpress.registry.models import DocumentMetadata

LOGGER = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n... [content truncated]"
_DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_SLUG_STRIP = re.compile(r"[^\w\s-]", re.UNICODE)
_SLUG_DASHES = re.compile(r"[\s_-]+")


class MetadataExtractor(Protocol):
    """Extract structured metadata from a markdown document."""

    def extract(self, content: str) -> DocumentMetadata:
        """Return metadata for ``content`` or raise ``ExtractionError``."""
        ...


class DSPyMetadataExtractor:
    """Extract document metadata with a DSPy program."""

    def __init__(
        self,
        settings: Optional[LLMSettings] = None,
        options: Optional[EnrichmentOptions] = None,
    ) -> None:
        """Configure the language model and build the extraction program.

        Args:
            settings: LLM configuration.
            options: Enrichment options (content truncation limit).
        """
        self._settings = settings or LLMSettings()
        self._options = options or EnrichmentOptions()
        configure_language_model(self._settings)
        self._program = self._build_program()

    def extract(self, content: str) -> DocumentMetadata:
        """Run the extraction program over ``content``.

        Args:
            content: Full markdown source of the document.

        Returns:
            DocumentMetadata: Validated metadata including token usage.

        Raises:
            ExtractionError: If the model call fails or returns unusable output.
        """
        document = truncate_content(content, self._options.max_content_chars)
        try:
            prediction = self._program(document=document)
        except Exception as exc:  # pragma: no cover - DSPy runtime errors
            LOGGER.debug("Metadata extraction call failed: %s", exc)
            raise ExtractionError(f"Language model call failed: {exc}") from exc

        metadata = normalize_metadata(prediction)
        return metadata.model_copy(update={"tokens_used": usage_from_prediction(prediction)})

    @staticmethod
    def _build_program():
        """Construct the DSPy program used for metadata extraction."""

        class DocumentMetadataSignature(dspy.Signature):  # type: ignore[misc]
            """Analyse a markdown document and extract structured metadata.

            Titles are concise (at most twenty words). The description is one
            sentence, the short summary two or three sentences and the summary
            at most one hundred words. Provide three to eight tags. The
            inferred date is the creation date implied by the document as
            YYYY-MM-DD, or an empty string when there is none. The inferred
            language is a language code such as zh-Hans or en-US.
            """

            document: str = dspy.InputField()
            title: str = dspy.OutputField()
            description: str = dspy.OutputField()
            summary: str = dspy.OutputField()
            short_summary: str = dspy.OutputField()
            key_points: list[str] = dspy.OutputField()
            audience: str = dspy.OutputField()
            slug: str = dspy.OutputField()
            tags: list[str] = dspy.OutputField()
            inferred_date: str = dspy.OutputField()
            inferred_language: str = dspy.OutputField()

        return dspy.Predict(DocumentMetadataSignature)


def truncate_content(content: str, limit: int) -> str:
    """Return ``content`` cut to ``limit`` characters, marking any truncation."""
    if len(content) <= limit:
        return content
    return content[:limit] + TRUNCATION_MARKER


def normalize_metadata(raw: Any) -> DocumentMetadata:
    """Turn a model response into validated metadata.

    Args:
        raw: DSPy prediction or mapping carrying the output fields.

    Returns:
        DocumentMetadata: Normalized metadata with zero token usage and the
        language code in canonical casing.

    Raises:
        ExtractionError: If required fields are missing or invalid.
    """
    title = _text(_field(raw, "title"))
    language = _text(_field(raw, "inferred_language"))
    if not title or not language:
        raise ExtractionError("Response is missing a title or inferred language")
    try:
        language = canonical_language(language)
    except ValueError as exc:
        raise ExtractionError(f"Response carries an invalid language code: {exc}") from exc

    date = _text(_field(raw, "inferred_date"))
    slug = slugify(_text(_field(raw, "slug")) or title)
    payload = {
        "title": title,
        "description": _text(_field(raw, "description")),
        "summary": _text(_field(raw, "summary")),
        "short_summary": _text(_field(raw, "short_summary")),
        "slug": slug,
        "tags": _unique(_text_list(_field(raw, "tags"))),
        "inferred_date": date if _DATE_PATTERN.match(date) else None,
        "inferred_language": language,
        "key_points": _text_list(_field(raw, "key_points")),
        "audience": _text(_field(raw, "audience")),
    }
    try:
        return DocumentMetadata.model_validate(payload)
    except ValidationError as exc:
        raise ExtractionError(f"Invalid metadata response: {exc}") from exc


def slugify(value: str) -> str:
    """Return a lowercase, hyphen-separated slug for ``value``."""
    cleaned = _SLUG_STRIP.sub("", value.strip().lower())
    return _SLUG_DASHES.sub("-", cleaned).strip("-")


def _field(raw: Any, name: str) -> Any:
    if isinstance(raw, dict):
        return raw.get(name)
    return getattr(raw, name, None)


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _text_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, Iterable):
        return []
    return [item for item in (_text(element) for element in value) if item]


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        key = value.lower()
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


__all__ = [
    "DSPyMetadataExtractor",
    "MetadataExtractor",
    "normalize_metadata",
    "slugify",
    "truncate_content",
]

"""Document translation built on top of DSPy."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import dspy

from hashpress.config.models import LLMSettings
from hashpress.languages import describe_language, same_language
from hashpress.llm import TranslationError, configure_language_model

LOGGER = logging.getLogger(__name__)

_BASE_GUIDANCE = (
    "Preserve the original markdown formatting, including headings, lists, code blocks, "
    "links, images and front-matter keys.",
    "Do not change any non-text elements or their formatting; keep link targets exactly as "
    "they are.",
    "Ensure that technical terms and code snippets remain unchanged.",
    "Provide a natural and fluent translation suitable for readers familiar with the subject.",
)

_JAPANESE_GUIDANCE = (
    "Use expressions that read naturally to native Japanese speakers.",
    "Write in the polite, formal register suited to technical documents (desu/masu form).",
    "Grammar and character set must fully follow Japanese conventions.",
    "Never use Traditional Chinese characters.",
    "Every kanji must use the standard Japanese Jōyō kanji glyph, for example "
    "国 not 國, 学 not 學, 広 not 廣, 円 not 圓, 医 not 醫, 図 not 圖, 対 not 對, "
    "声 not 聲, 芸 not 藝, 験 not 驗.",
)


class DocumentTranslator(Protocol):
    """Translate a markdown document into a target language."""

    def translate(self, content: str, target_language: str) -> str:
        """Return the translated document or raise ``TranslationError``."""
        ...


def translation_instructions(target_language: str) -> str:
    """Return the translation guidance for ``target_language``."""
    lines = [
        "You are a professional document translator.",
        f"Translate the markdown document into {describe_language(target_language)}.",
    ]
    if same_language(target_language, "ja-JP"):
        lines.extend(_JAPANESE_GUIDANCE)
    lines.extend(_BASE_GUIDANCE)
    return "\n".join(lines)


class DSPyDocumentTranslator:
    """Translate documents with a DSPy program."""

    def __init__(self, settings: Optional[LLMSettings] = None) -> None:
        """Configure the language model and build the translation program.

        Args:
            settings: LLM configuration.
        """
        self._settings = settings or LLMSettings()
        configure_language_model(self._settings)
        self._program = self._build_program()

    def translate(self, content: str, target_language: str) -> str:
        """Translate ``content`` into ``target_language``.

        Raises:
            TranslationError: If the model call fails or returns nothing.
        """
        try:
            prediction = self._program(
                instructions=translation_instructions(target_language),
                document=content,
            )
        except Exception as exc:  # pragma: no cover - DSPy runtime errors
            LOGGER.debug("Translation call failed: %s", exc)
            raise TranslationError(f"Language model call failed: {exc}") from exc

        translated = str(getattr(prediction, "translation", "") or "").strip()
        if not translated:
            raise TranslationError(f"Empty translation response for {target_language}")
        return translated

    @staticmethod
    def _build_program():
        """Construct the DSPy program used for translation."""

        class TranslationSignature(dspy.Signature):  # type: ignore[misc]
            """Translate a markdown document following the given instructions."""

            instructions: str = dspy.InputField()
            document: str = dspy.InputField()
            translation: str = dspy.OutputField(desc="translated markdown document")

        return dspy.Predict(TranslationSignature)


__all__ = ["DSPyDocumentTranslator", "DocumentTranslator", "translation_instructions"]

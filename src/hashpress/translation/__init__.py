"""Document translation."""

from hashpress.languages import LANGUAGE_NAMES, describe_language, language_name, same_language

from .engine import DocumentTranslator, DSPyDocumentTranslator, translation_instructions
from .stage import TranslationStage

__all__ = [
    "DSPyDocumentTranslator",
    "DocumentTranslator",
    "LANGUAGE_NAMES",
    "TranslationStage",
    "describe_language",
    "language_name",
    "same_language",
    "translation_instructions",
]

"""Language-model runtime shared by the enrichment, categorization and translation stages."""

from .errors import ClassificationError, CollaboratorError, ExtractionError, TranslationError
from .runtime import configure_language_model
from .usage import usage_from_prediction

__all__ = [
    "ClassificationError",
    "CollaboratorError",
    "ExtractionError",
    "TranslationError",
    "configure_language_model",
    "usage_from_prediction",
]

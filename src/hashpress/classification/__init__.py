"""Document categorization."""

from .engine import CategoryClassifier, DSPyCategoryClassifier
from .models import ClassificationResult, ClassificationSubject
from .stage import CategorizationStage

__all__ = [
    "CategorizationStage",
    "CategoryClassifier",
    "ClassificationResult",
    "ClassificationSubject",
    "DSPyCategoryClassifier",
]

"""Errors raised by language-model collaborators."""


class CollaboratorError(Exception):
    """Base exception for failures of an external collaborator."""


class ExtractionError(CollaboratorError):
    """Raised when document metadata cannot be extracted."""


class ClassificationError(CollaboratorError):
    """Raised when the category taxonomy cannot be produced."""


class TranslationError(CollaboratorError):
    """Raised when a document cannot be translated."""

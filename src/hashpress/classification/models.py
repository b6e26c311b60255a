"""Data models used by the categorization stage."""

from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from hashpress.registry.models import DocumentMetadata


class ClassificationSubject(BaseModel):
    """A document presented to the category classifier.

    Attributes:
        hash: Content hash identifying the document.
        path: Current source-relative path.
        metadata: Extracted metadata of the document.
        category: Label already assigned, if any.
    """

    hash: str
    path: str
    metadata: DocumentMetadata
    category: str | None = None


class ClassificationResult(BaseModel):
    """Taxonomy and hash-to-label assignments returned by a classifier.

    Attributes:
        labels: Category labels making up the taxonomy.
        mapping: Category label per content hash.
    """

    labels: List[str] = Field(default_factory=list)
    mapping: Dict[str, str] = Field(default_factory=dict)

    @field_validator("labels")
    @classmethod
    def _clean_labels(cls, value: List[str]) -> List[str]:
        cleaned: list[str] = []
        for label in value:
            label = label.strip()
            if label and label not in cleaned:
                cleaned.append(label)
        return cleaned

    @field_validator("mapping")
    @classmethod
    def _clean_mapping(cls, value: Dict[str, str]) -> Dict[str, str]:
        return {key.strip(): label.strip() for key, label in value.items() if label.strip()}


__all__ = ["ClassificationResult", "ClassificationSubject"]

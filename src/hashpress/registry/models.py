"""Registry data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from hashpress.languages import LANGUAGE_CODE_PATTERN

REGISTRY_VERSION = 1


class TokenUsage(BaseModel):
    """Token accounting reported by a language-model call."""

    prompt: int = 0
    completion: int = 0
    total: int = 0


class DocumentMetadata(BaseModel):
    """Descriptive metadata extracted from a source document.

    Attributes:
        title: Document title.
        description: One-line summary.
        summary: Medium-length summary used in front-matter.
        short_summary: Two or three sentence summary.
        slug: Lowercase hyphenated identifier.
        tags: Keyword tags.
        inferred_date: Publication date as ``YYYY-MM-DD`` when one can be inferred.
        inferred_language: Language code of the document body (e.g. ``en-US``).
        key_points: Key takeaways.
        audience: Intended readership.
        tokens_used: Token usage of the extraction call.
    """

    title: str
    description: str = ""
    summary: str = ""
    short_summary: str = ""
    slug: str = ""
    tags: List[str] = Field(default_factory=list)
    inferred_date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    inferred_language: str = Field(pattern=LANGUAGE_CODE_PATTERN.pattern)
    key_points: List[str] = Field(default_factory=list)
    audience: str = ""
    tokens_used: TokenUsage = Field(default_factory=TokenUsage)


class TranslationRecord(BaseModel):
    """Bookkeeping for one translated artifact."""

    source_hash: str
    content_length: int = 0
    translated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class RegistryEntry(BaseModel):
    """One distinct source document, keyed by the hash of its bytes."""

    hash: str
    path: str
    links: List[str] = Field(default_factory=list)
    metadata: Optional[DocumentMetadata] = None
    category: Optional[str] = None
    materialized_hash: Optional[str] = None
    translations: Dict[str, TranslationRecord] = Field(default_factory=dict)


class RegistryStore(BaseModel):
    """Serialized form of the registry file."""

    version: int = REGISTRY_VERSION
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    entries: List[RegistryEntry] = Field(default_factory=list)


__all__ = [
    "REGISTRY_VERSION",
    "TokenUsage",
    "DocumentMetadata",
    "TranslationRecord",
    "RegistryEntry",
    "RegistryStore",
]

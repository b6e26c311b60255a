"""Metadata enrichment."""

from .engine import DSPyMetadataExtractor, MetadataExtractor, normalize_metadata, slugify
from .stage import EnrichmentStage

__all__ = [
    "DSPyMetadataExtractor",
    "EnrichmentStage",
    "MetadataExtractor",
    "normalize_metadata",
    "slugify",
]

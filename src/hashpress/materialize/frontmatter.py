"""YAML front-matter parsing and rendering."""

from __future__ import annotations

import logging
import re
from typing import Any

import yaml

from hashpress.registry.models import DocumentMetadata

LOGGER = logging.getLogger(__name__)

FRONTMATTER_PATTERN = re.compile(r"^---\n([\s\S]*?)\n---")


def split_frontmatter(content: str) -> tuple[dict[str, Any], str]:
    """Split ``content`` into its front-matter mapping and body.

    Args:
        content: Markdown document.

    Returns:
        tuple[dict[str, Any], str]: Parsed front-matter (empty when absent or
        unparseable) and the body, trimmed when a block was present.
    """
    match = FRONTMATTER_PATTERN.match(content)
    if match is None:
        return {}, content

    body = content[match.end() :].strip()
    try:
        parsed = yaml.safe_load(match.group(1).strip()) or {}
    except yaml.YAMLError as exc:
        LOGGER.debug("Discarding unparseable front-matter: %s", exc)
        parsed = {}
    if not isinstance(parsed, dict):
        parsed = {}
    return parsed, body


def render_frontmatter(data: dict[str, Any], body: str) -> str:
    """Return ``body`` preceded by a front-matter block holding ``data``."""
    serialized = yaml.safe_dump(data, sort_keys=False, allow_unicode=True)
    return f"---\n{serialized}---\n\n{body}"


def frontmatter_for(metadata: DocumentMetadata) -> dict[str, Any]:
    """Return the front-matter fields published for ``metadata``."""
    data: dict[str, Any] = {
        "title": metadata.title,
        "summary": metadata.summary,
        "tags": list(metadata.tags),
    }
    if metadata.inferred_date:
        data["date"] = metadata.inferred_date
    return data


def replace_frontmatter(content: str, metadata: DocumentMetadata) -> str:
    """Replace any existing front-matter block of ``content`` wholesale."""
    _, body = split_frontmatter(content)
    return render_frontmatter(frontmatter_for(metadata), body)


__all__ = [
    "FRONTMATTER_PATTERN",
    "frontmatter_for",
    "render_frontmatter",
    "replace_frontmatter",
    "split_frontmatter",
]

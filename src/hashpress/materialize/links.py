"""Rewrite relative document links to content-hash URIs."""

from __future__ import annotations

import logging
import re
from typing import Callable, Optional

from hashpress.ingestion.links import LINK_PATTERN, is_external, resolve_link

LOGGER = logging.getLogger(__name__)


def rewrite_links(
    content: str,
    source_path: str,
    lookup: Callable[[str], Optional[str]],
    *,
    scheme: str = "hashpress",
    extension: str = ".md",
) -> tuple[str, list[str]]:
    """Replace resolvable relative link targets with ``<scheme>://<hash>``.

    Targets are resolved against ``source_path``; fragments and queries are
    kept after the hash. External targets are left alone, as are targets that
    do not resolve to a registered document.

    Args:
        content: Document text.
        source_path: Root-relative path of the document being rewritten.
        lookup: Return the content hash of a root-relative path, or ``None``.
        scheme: URI scheme of rewritten links.
        extension: Document extension; unresolved targets with it are reported.

    Returns:
        tuple[str, list[str]]: Rewritten text and the unresolved document targets.
    """
    unresolved: list[str] = []

    def _replace(match: re.Match[str]) -> str:
        target = match.group(1)
        if is_external(target):
            return match.group(0)
        resolved = resolve_link(source_path, target)
        content_hash = lookup(resolved.path) if resolved is not None else None
        if resolved is None or content_hash is None:
            location = resolved.path if resolved is not None else target
            if location.lower().endswith(extension.lower()):
                unresolved.append(target)
            return match.group(0)
        start = match.start(1) - match.start(0)
        end = match.end(1) - match.start(0)
        whole = match.group(0)
        return f"{whole[:start]}{scheme}://{content_hash}{resolved.suffix}{whole[end:]}"

    rewritten = LINK_PATTERN.sub(_replace, content)
    for target in unresolved:
        LOGGER.warning("Unresolved link %r in %s left unchanged", target, source_path)
    return rewritten, unresolved


__all__ = ["rewrite_links"]

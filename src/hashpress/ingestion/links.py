"""Markdown link extraction and resolution."""

from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Optional

LINK_PATTERN = re.compile(r"\[.*?\]\((.*?)\)")
_SCHEME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")


@dataclass(frozen=True)
class ResolvedLink:
    """A relative link target resolved against the linking document.

    Attributes:
        path: Root-relative POSIX path of the target document.
        suffix: Query and fragment carried over from the raw target (e.g. ``#intro``).
    """

    path: str
    suffix: str = ""


def extract_links(text: str) -> list[str]:
    """Return every raw ``[text](target)`` target in document order."""
    return [match.group(1) for match in LINK_PATTERN.finditer(text)]


def is_external(target: str) -> bool:
    """Return whether ``target`` is not a relative document link.

    Absolute URLs, scheme links such as ``mailto:``, protocol-relative URLs,
    pure anchors and empty targets are all external.
    """
    stripped = target.strip()
    if not stripped or stripped.startswith("#") or stripped.startswith("//"):
        return True
    return bool(_SCHEME_PATTERN.match(stripped))


def _split_target(target: str) -> tuple[str, str]:
    """Return the location and the query/fragment suffix of a raw target."""
    cleaned = target.strip()
    if cleaned.startswith("<") and cleaned.endswith(">"):
        cleaned = cleaned[1:-1]

    split_at = len(cleaned)
    for marker in ("#", "?"):
        index = cleaned.find(marker)
        if index != -1:
            split_at = min(split_at, index)
    return cleaned[:split_at], cleaned[split_at:]


def _normalize(source_path: str, location: str) -> str:
    if location.startswith("/"):
        joined = location.lstrip("/")
    else:
        joined = posixpath.join(posixpath.dirname(source_path), location)
    return posixpath.normpath(joined)


def _outside_root(normalized: str) -> bool:
    return normalized == ".." or normalized.startswith("../")


def resolve_link(source_path: str, target: str) -> Optional[ResolvedLink]:
    """Resolve ``target`` relative to the document at ``source_path``.

    A leading ``/`` resolves against the source root.

    Args:
        source_path: Root-relative POSIX path of the linking document.
        target: Raw link target.

    Returns:
        Optional[ResolvedLink]: The resolved link, or ``None`` for external
        targets, targets without a location and targets escaping the source root.
    """
    if is_external(target):
        return None

    location, suffix = _split_target(target)
    if not location:
        return None

    normalized = _normalize(source_path, location)
    if normalized in ("", ".") or _outside_root(normalized):
        return None
    return ResolvedLink(path=normalized, suffix=suffix)


def escapes_root(source_path: str, target: str) -> bool:
    """Return whether the relative ``target`` points above the source root."""
    if is_external(target):
        return False
    location, _ = _split_target(target)
    return bool(location) and _outside_root(_normalize(source_path, location))


__all__ = [
    "LINK_PATTERN",
    "ResolvedLink",
    "escapes_root",
    "extract_links",
    "is_external",
    "resolve_link",
]

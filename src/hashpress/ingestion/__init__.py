"""Source discovery, hashing and registry reconciliation."""

from .discovery import FileLister, GitFileLister
from .errors import RecordIOError, ScanError
from .hashing import HashComputer, hash_bytes, hash_text
from .links import ResolvedLink, escapes_root, extract_links, is_external, resolve_link
from .scanner import Scanner

__all__ = [
    "FileLister",
    "GitFileLister",
    "HashComputer",
    "RecordIOError",
    "ResolvedLink",
    "ScanError",
    "Scanner",
    "escapes_root",
    "extract_links",
    "hash_bytes",
    "hash_text",
    "is_external",
    "resolve_link",
]

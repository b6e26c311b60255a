"""Content-addressed registry of source documents."""

from __future__ import annotations

import json
import logging
import posixpath
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional

from pydantic import ValidationError

from .errors import RegistryError, StoreCorruptError
from .models import (
    REGISTRY_VERSION,
    DocumentMetadata,
    RegistryEntry,
    RegistryStore,
    TokenUsage,
    TranslationRecord,
)

LOGGER = logging.getLogger(__name__)


class Registry:
    """Hold every known document keyed by content hash and persist it as JSON.

    One instance is created per build and handed to each stage. All mutations
    happen in memory; ``save`` writes the whole store back in one go.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the registry for the given store file.

        Args:
            path: Location of ``registry.json``.
        """
        self._path = path
        self._entries: dict[str, RegistryEntry] = {}
        self._updated_at: Optional[datetime] = None
        self._snapshot: Optional[str] = None

    @property
    def path(self) -> Path:
        """Return the location of the store file."""
        return self._path

    @property
    def updated_at(self) -> Optional[datetime]:
        """Return the timestamp recorded by the last save, if any."""
        return self._updated_at

    @property
    def entries(self) -> list[RegistryEntry]:
        """Return the live entries in store order."""
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, content_hash: object) -> bool:
        return content_hash in self._entries

    def __iter__(self) -> Iterator[RegistryEntry]:
        return iter(self.entries)

    # Persistence ------------------------------------------------------

    def load(self) -> "Registry":
        """Load the store from disk, starting empty when it is absent or corrupt.

        Returns:
            Registry: ``self`` for chaining.
        """
        try:
            store = self._read_store()
        except StoreCorruptError as exc:
            LOGGER.warning("Ignoring unreadable registry %s: %s", self._path, exc)
            store = None

        self._entries = {}
        if store is None:
            self._updated_at = None
        else:
            for entry in store.entries:
                self._entries[entry.hash] = entry
            self._updated_at = store.updated_at
        self._snapshot = self._fingerprint()
        LOGGER.debug("Loaded %d registry entries from %s", len(self._entries), self._path)
        return self

    def save(self, *, only_if_changed: bool = False) -> bool:
        """Persist the full registry.

        Args:
            only_if_changed: Skip the write when no entry changed since the
                last load or save.

        Returns:
            bool: Whether the file was written.
        """
        self.sort_entries()
        fingerprint = self._fingerprint()
        if only_if_changed and fingerprint == self._snapshot and self._path.exists():
            return False

        self._updated_at = datetime.now(timezone.utc)
        store = RegistryStore(
            version=REGISTRY_VERSION,
            updated_at=self._updated_at,
            entries=list(self._entries.values()),
        )
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(
            json.dumps(store.model_dump(mode="json"), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        self._snapshot = fingerprint
        return True

    # Lookup -----------------------------------------------------------

    def find_by_hash(self, content_hash: str) -> Optional[RegistryEntry]:
        return self._entries.get(content_hash)

    def find_by_path(self, path: str) -> Optional[RegistryEntry]:
        for entry in self._entries.values():
            if entry.path == path:
                return entry
        return None

    # Mutation ---------------------------------------------------------

    def add(self, content_hash: str, path: str, links: Iterable[str] = ()) -> RegistryEntry:
        """Register a document not seen before.

        Args:
            content_hash: SHA-256 digest of the document bytes.
            path: Source-relative POSIX path.
            links: Raw link targets extracted from the document.

        Returns:
            RegistryEntry: The new entry.

        Raises:
            RegistryError: If an entry with ``content_hash`` already exists.
        """
        if content_hash in self._entries:
            raise RegistryError(f"Registry already contains {content_hash}")
        entry = RegistryEntry(hash=content_hash, path=path, links=list(links))
        self._entries[content_hash] = entry
        return entry

    def move(self, content_hash: str, path: str, links: Iterable[str] = ()) -> bool:
        """Update the path and links of an existing entry.

        Args:
            content_hash: Hash of the entry to update.
            path: Path the content is now found at.
            links: Freshly extracted link targets.

        Returns:
            bool: Whether the path changed.

        Raises:
            RegistryError: If ``content_hash`` is unknown.
        """
        entry = self._require(content_hash)
        moved = entry.path != path
        entry.path = path
        entry.links = list(links)
        return moved

    def evict_unobserved(self, observed: Iterable[str]) -> list[RegistryEntry]:
        """Drop every entry whose hash is not in ``observed``.

        Returns:
            list[RegistryEntry]: The evicted entries.
        """
        keep = set(observed)
        evicted = [entry for entry in self._entries.values() if entry.hash not in keep]
        for entry in evicted:
            del self._entries[entry.hash]
        return evicted

    def set_metadata(self, content_hash: str, metadata: DocumentMetadata) -> None:
        """Attach extracted metadata to an entry.

        Raises:
            RegistryError: If the entry is unknown or already carries metadata.
        """
        entry = self._require(content_hash)
        if entry.metadata is not None:
            raise RegistryError(f"Metadata for {content_hash} is already set")
        entry.metadata = metadata

    def set_category(self, content_hash: str, category: str) -> None:
        self._require(content_hash).category = category

    def set_materialized_hash(self, content_hash: str, materialized_hash: str) -> None:
        self._require(content_hash).materialized_hash = materialized_hash

    def record_translation(
        self, content_hash: str, language: str, record: TranslationRecord
    ) -> None:
        self._require(content_hash).translations[language] = record

    def sort_entries(self) -> None:
        """Order entries by parent directory, then by path."""
        ordered = sorted(
            self._entries.values(),
            key=lambda entry: (posixpath.dirname(entry.path), entry.path),
        )
        self._entries = {entry.hash: entry for entry in ordered}

    # Internal helpers -------------------------------------------------

    def _require(self, content_hash: str) -> RegistryEntry:
        entry = self._entries.get(content_hash)
        if entry is None:
            raise RegistryError(f"Unknown registry entry {content_hash}")
        return entry

    def _read_store(self) -> Optional[RegistryStore]:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise StoreCorruptError(f"Invalid registry data: {exc}") from exc
        try:
            return RegistryStore.model_validate(data)
        except ValidationError as exc:
            raise StoreCorruptError(f"Invalid registry data: {exc}") from exc

    def _fingerprint(self) -> str:
        payload = [entry.model_dump(mode="json") for entry in self._entries.values()]
        return json.dumps(payload, sort_keys=True, ensure_ascii=False)


__all__ = [
    "Registry",
    "RegistryEntry",
    "RegistryStore",
    "DocumentMetadata",
    "TokenUsage",
    "TranslationRecord",
    "RegistryError",
    "StoreCorruptError",
]

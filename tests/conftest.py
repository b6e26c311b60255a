"""Shared fixtures: fake language-model collaborators and source trees."""

from __future__ import annotations

import re
import threading
from pathlib import Path
from typing import Callable, Sequence

import pytest

from hashpress.classification import ClassificationResult, ClassificationSubject
from hashpress.config.models import HashpressConfig
from hashpress.layout import BuildLayout
from hashpress.llm import ClassificationError, ExtractionError, TranslationError
from hashpress.registry import Registry
from hashpress.registry.models import DocumentMetadata, TokenUsage

_LANG_MARKER = re.compile(r"<!--\s*lang:\s*([\w-]+)\s*-->")


class FakeExtractor:
    """Derive metadata from the first heading; fail on documents containing FAIL."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self._lock = threading.Lock()

    def extract(self, content: str) -> DocumentMetadata:
        with self._lock:
            self.calls.append(content)
        if "FAIL" in content:
            raise ExtractionError("model refused")
        title = next(
            (line.lstrip("# ").strip() for line in content.splitlines() if line.strip()),
            "Untitled",
        )
        marker = _LANG_MARKER.search(content)
        return DocumentMetadata(
            title=title,
            summary=f"About {title}",
            tags=["docs"],
            inferred_language=marker.group(1) if marker else "en-US",
            tokens_used=TokenUsage(prompt=10, completion=5, total=15),
        )


class FakeClassifier:
    """Label every uncategorized document "General"."""

    def __init__(self, *, fail: bool = False, extra: dict[str, str] | None = None) -> None:
        self.calls: list[tuple[list[str], list[str], list[str]]] = []
        self._fail = fail
        self._extra = extra or {}

    def classify(
        self,
        existing_labels: Sequence[str],
        uncategorized: Sequence[ClassificationSubject],
        categorized: Sequence[ClassificationSubject],
    ) -> ClassificationResult:
        self.calls.append(
            (
                list(existing_labels),
                [subject.hash for subject in uncategorized],
                [subject.hash for subject in categorized],
            )
        )
        if self._fail:
            raise ClassificationError("taxonomy unavailable")
        mapping = {subject.hash: "General" for subject in uncategorized}
        mapping.update(self._extra)
        return ClassificationResult(labels=["General"], mapping=mapping)


class FakeTranslator:
    """Prefix the document with the target language; fail for languages in ``failing``."""

    def __init__(self, failing: Sequence[str] = ()) -> None:
        self.calls: list[tuple[str, str]] = []
        self._failing = set(failing)
        self._lock = threading.Lock()

    def translate(self, content: str, target_language: str) -> str:
        with self._lock:
            self.calls.append((content, target_language))
        if target_language in self._failing:
            raise TranslationError(f"no model for {target_language}")
        return f"[{target_language}]\n{content}"


class WalkingFileLister:
    """List every file under the root without consulting git."""

    def __init__(self, exclude: Sequence[str] = ()) -> None:
        self._exclude = set(exclude)

    def list_tracked_and_untracked(self, root: Path) -> list[str]:
        paths = [
            path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file()
        ]
        return sorted(path for path in paths if path not in self._exclude)


@pytest.fixture
def extractor() -> FakeExtractor:
    return FakeExtractor()


@pytest.fixture
def classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def translator() -> FakeTranslator:
    return FakeTranslator()


@pytest.fixture
def lister() -> WalkingFileLister:
    return WalkingFileLister()


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def layout(source_root: Path) -> BuildLayout:
    return BuildLayout.for_root(source_root)


@pytest.fixture
def registry(layout: BuildLayout) -> Registry:
    return Registry(layout.registry_path).load()


@pytest.fixture
def config() -> HashpressConfig:
    return HashpressConfig()


@pytest.fixture
def write_tree() -> Callable[[Path, dict[str, str]], None]:
    """Return a helper writing ``{relative_path: text}`` files beneath a root."""

    def _write(root: Path, files: dict[str, str]) -> None:
        for relative, text in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")

    return _write


@pytest.fixture
def make_lister() -> Callable[..., WalkingFileLister]:
    return WalkingFileLister


@pytest.fixture
def make_classifier() -> Callable[..., FakeClassifier]:
    return FakeClassifier


@pytest.fixture
def make_translator() -> Callable[..., FakeTranslator]:
    return FakeTranslator

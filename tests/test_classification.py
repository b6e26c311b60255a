"""Categorization stage tests."""

from __future__ import annotations

from pathlib import Path

from hashpress.classification import CategorizationStage
from hashpress.registry import DocumentMetadata, Registry


def _registry(tmp_path: Path) -> Registry:
    registry = Registry(tmp_path / "registry.json").load()
    for index, name in enumerate(["a", "b", "c"]):
        registry.add(f"h{index}", f"{name}.md")
    registry.set_metadata("h0", DocumentMetadata(title="A", inferred_language="en-US"))
    registry.set_metadata("h1", DocumentMetadata(title="B", inferred_language="en-US"))
    return registry


def test_single_call_categorizes_enriched_entries(tmp_path: Path, classifier) -> None:
    registry = _registry(tmp_path)

    report = CategorizationStage(registry, classifier).run()

    assert len(classifier.calls) == 1
    _, uncategorized, categorized = classifier.calls[0]
    assert sorted(uncategorized) == ["h0", "h1"]
    assert categorized == []
    assert report.processed == 2
    assert registry.find_by_hash("h0").category == "General"
    # Unenriched entries are never presented.
    assert registry.find_by_hash("h2").category is None


def test_skips_when_every_enriched_entry_has_a_category(tmp_path: Path, classifier) -> None:
    registry = _registry(tmp_path)
    registry.set_category("h0", "Guides")
    registry.set_category("h1", "Reference")

    report = CategorizationStage(registry, classifier).run()

    assert classifier.calls == []
    assert report.skipped == 2


def test_existing_labels_are_passed_as_context(tmp_path: Path, classifier) -> None:
    registry = _registry(tmp_path)
    registry.set_category("h0", "Guides")

    CategorizationStage(registry, classifier).run()

    existing, uncategorized, categorized = classifier.calls[0]
    assert existing == ["Guides"]
    assert uncategorized == ["h1"]
    assert categorized == ["h0"]


def test_unknown_hashes_in_response_are_ignored(tmp_path: Path, make_classifier) -> None:
    registry = _registry(tmp_path)
    classifier = make_classifier(extra={"deadbeef": "Ghost"})

    report = CategorizationStage(registry, classifier).run()

    assert report.processed == 2
    assert registry.find_by_hash("deadbeef") is None


def test_classification_error_leaves_entries_untouched(tmp_path: Path, make_classifier) -> None:
    registry = _registry(tmp_path)
    registry.set_category("h0", "Guides")

    report = CategorizationStage(registry, make_classifier(fail=True)).run()

    assert report.failed == 1
    assert registry.find_by_hash("h0").category == "Guides"
    assert registry.find_by_hash("h1").category is None

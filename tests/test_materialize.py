"""Materialization stage tests."""

from __future__ import annotations

import hashlib
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from hashpress.enrichment import EnrichmentStage
from hashpress.ingestion import Scanner
from hashpress.layout import BuildLayout, LayoutError
from hashpress.materialize import MaterializeStage, replace_frontmatter, split_frontmatter
from hashpress.registry import DocumentMetadata, Registry


def _sha(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _prepare(layout: BuildLayout, registry: Registry, lister, extractor) -> None:
    Scanner(registry, layout, lister=lister).run()
    EnrichmentStage(registry, layout, extractor).run()


def test_replace_frontmatter_swaps_existing_block() -> None:
    metadata = DocumentMetadata(
        title="Guide",
        summary="How to start.",
        tags=["setup"],
        inferred_date="2024-05-01",
        inferred_language="en-US",
    )
    content = "---\ntitle: Old\ndraft: true\n---\n\n\n# Guide\nBody\n"

    result = replace_frontmatter(content, metadata)
    frontmatter, body = split_frontmatter(result)

    assert frontmatter == {
        "title": "Guide",
        "summary": "How to start.",
        "tags": ["setup"],
        "date": "2024-05-01",
    }
    assert body == "# Guide\nBody"
    assert result.startswith("---\n")
    assert "\n---\n\n# Guide" in result


def test_frontmatter_omits_unknown_date() -> None:
    metadata = DocumentMetadata(title="T", inferred_language="en-US")

    frontmatter, _ = split_frontmatter(replace_frontmatter("plain text", metadata))

    assert "date" not in frontmatter


def test_materialize_rewrites_links_and_writes_native_document(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(
        source_root,
        {"a.md": "# A\n[B](./b.md) [Missing](./gone.md)\n", "b.md": "# B\n"},
    )
    _prepare(layout, registry, lister, extractor)

    report = MaterializeStage(registry, layout).run()

    a_hash = _sha("# A\n[B](./b.md) [Missing](./gone.md)\n")
    native = layout.artifact_path("en-US", a_hash).read_text(encoding="utf-8")
    assert f"[B](hashpress://{_sha('# B' + chr(10))})" in native
    assert "[Missing](./gone.md)" in native
    header = yaml.safe_load(native.split("---\n")[1])
    assert header["title"] == "A"
    entry = registry.find_by_hash(a_hash)
    assert entry is not None and entry.materialized_hash == _sha(native)
    assert report.processed == 2
    assert report.counts["unresolved_links"] == 1


def test_materialize_only_writes_changed_documents(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(source_root, {"a.md": "# A\n"})
    _prepare(layout, registry, lister, extractor)
    MaterializeStage(registry, layout).run()
    artifact = layout.artifact_path("en-US", _sha("# A\n"))
    first_mtime = artifact.stat().st_mtime_ns

    report = MaterializeStage(registry, layout).run()

    assert report.processed == 0
    assert report.skipped == 1
    assert artifact.stat().st_mtime_ns == first_mtime


def test_links_to_duplicate_content_resolve_to_shared_hash(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(
        source_root,
        {"a.md": "# Shared\n", "b.md": "# B\n[A](a.md)\n", "c.md": "# Shared\n"},
    )
    _prepare(layout, registry, lister, extractor)

    MaterializeStage(registry, layout).run()

    native = layout.artifact_path("en-US", _sha("# B\n[A](a.md)\n")).read_text(encoding="utf-8")
    assert f"[A](hashpress://{_sha('# Shared' + chr(10))})" in native


def test_unenriched_entries_are_not_materialized(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(source_root, {"a.md": "# A\n", "bad.md": "# FAIL\n"})
    _prepare(layout, registry, lister, extractor)

    report = MaterializeStage(registry, layout).run()

    assert report.processed == 1
    assert report.counts["unenriched"] == 1
    assert not layout.artifact_path("en-US", _sha("# FAIL\n")).exists()


def test_prune_removes_artifacts_of_evicted_entries(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(source_root, {"a.md": "# A\n"})
    _prepare(layout, registry, lister, extractor)
    stale = layout.artifact_path("ja-JP", "0" * 64)
    stale.parent.mkdir(parents=True, exist_ok=True)
    stale.write_text("old", encoding="utf-8")

    report = MaterializeStage(registry, layout).run()

    assert not stale.exists()
    assert report.counts["pruned"] == 1
    assert layout.artifact_path("en-US", _sha("# A\n")).exists()


def test_prune_can_be_disabled(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(source_root, {"a.md": "# A\n"})
    _prepare(layout, registry, lister, extractor)
    stale = layout.artifact_path("en-US", "f" * 64)
    stale.parent.mkdir(parents=True, exist_ok=True)
    stale.write_text("old", encoding="utf-8")

    MaterializeStage(registry, layout, prune_artifacts=False).run()

    assert stale.exists()


def test_prune_leaves_files_not_named_after_a_hash(
    source_root: Path, layout: BuildLayout, registry: Registry, lister, extractor, write_tree
) -> None:
    write_tree(source_root, {"a.md": "# A\n"})
    _prepare(layout, registry, lister, extractor)
    notes = layout.artifacts_dir / "guide" / "intro.md"
    notes.parent.mkdir(parents=True, exist_ok=True)
    notes.write_text("# Keep me\n", encoding="utf-8")

    report = MaterializeStage(registry, layout).run()

    assert notes.exists()
    assert report.counts["pruned"] == 0


@pytest.mark.parametrize("state_dir", [".", ".."])
def test_layout_rejects_state_dir_containing_the_root(source_root: Path, state_dir: str) -> None:
    with pytest.raises(LayoutError):
        BuildLayout.for_root(source_root, state_dir=Path(state_dir))


def test_path_like_languages_never_reach_the_file_system(layout: BuildLayout) -> None:
    with pytest.raises(ValidationError):
        DocumentMetadata(title="T", inferred_language="../../escaped")
    with pytest.raises(ValueError):
        layout.artifact_path("en/US", "0" * 64)

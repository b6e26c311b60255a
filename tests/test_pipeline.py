"""End-to-end build pipeline tests with fake collaborators."""

from __future__ import annotations

import hashlib
from pathlib import Path

from hashpress.config.models import HashpressConfig
from hashpress.layout import BuildLayout
from hashpress.pipeline import BuildPipeline
from hashpress.registry import Registry


def _sha(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def _build(config, layout, lister, extractor, classifier, translator):
    registry = Registry(layout.registry_path).load()
    pipeline = BuildPipeline(
        config,
        layout,
        registry,
        extractor=extractor,
        classifier=classifier,
        translator=translator,
        lister=lister,
    )
    return pipeline.run()


def _config(languages: list[str]) -> HashpressConfig:
    return HashpressConfig.model_validate({"build": {"languages": languages}})


SOURCES = {
    "a.md": "# Alpha\nShared text.\n",
    "b.md": "# Beta\nSee [Alpha](./a.md#intro) and ![logo](img/logo.png).\n",
    "c.md": "# Alpha\nShared text.\n",
}


def test_build_produces_native_and_translated_documents(
    source_root: Path,
    layout: BuildLayout,
    lister,
    extractor,
    classifier,
    translator,
    write_tree,
) -> None:
    write_tree(source_root, SOURCES)

    report = _build(_config(["ja-JP"]), layout, lister, extractor, classifier, translator)

    registry = Registry(layout.registry_path).load()
    assert len(registry) == 2
    alpha_hash = _sha(SOURCES["a.md"])
    beta_hash = _sha(SOURCES["b.md"])
    native_beta = layout.artifact_path("en-US", beta_hash).read_text(encoding="utf-8")
    assert f"[Alpha](hashpress://{alpha_hash}#intro)" in native_beta
    assert "![logo](img/logo.png)" in native_beta
    assert layout.artifact_path("ja-JP", alpha_hash).is_file()
    assert layout.artifact_path("ja-JP", beta_hash).is_file()
    assert all(entry.category == "General" for entry in registry.entries)
    assert [stage.stage for stage in report.stages] == [
        "scan",
        "enrich",
        "categorize",
        "materialize",
        "translate",
    ]
    assert not report.failed


def test_second_build_makes_no_model_calls_and_keeps_registry_bytes(
    source_root: Path,
    layout: BuildLayout,
    lister,
    extractor,
    classifier,
    translator,
    write_tree,
    make_classifier,
    make_translator,
) -> None:
    write_tree(source_root, SOURCES)
    config = _config(["ja-JP"])
    _build(config, layout, lister, extractor, classifier, translator)
    before = layout.registry_path.read_bytes()
    extract_calls = len(extractor.calls)

    second_classifier = make_classifier()
    second_translator = make_translator()
    _build(config, layout, lister, extractor, second_classifier, second_translator)

    assert len(extractor.calls) == extract_calls
    assert second_classifier.calls == []
    assert second_translator.calls == []
    assert layout.registry_path.read_bytes() == before


def test_content_change_rebuilds_only_the_changed_document(
    source_root: Path,
    layout: BuildLayout,
    lister,
    extractor,
    classifier,
    translator,
    write_tree,
    make_translator,
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n", "b.md": "# Beta\n"})
    config = _config(["fr-FR"])
    _build(config, layout, lister, extractor, classifier, translator)
    old_hash = _sha("# Alpha\n")

    write_tree(source_root, {"a.md": "# Alpha, revised\n"})
    second_translator = make_translator()
    report = _build(config, layout, lister, extractor, classifier, second_translator)

    new_hash = _sha("# Alpha, revised\n")
    assert [language for _, language in second_translator.calls] == ["fr-FR"]
    assert layout.artifact_path("fr-FR", new_hash).is_file()
    assert not layout.artifact_path("en-US", old_hash).exists()
    assert not layout.artifact_path("fr-FR", old_hash).exists()
    assert report.stage("scan").counts["evicted"] == 1
    assert report.stage("materialize").counts["pruned"] == 2


def test_failed_translation_is_retried_on_next_build(
    source_root: Path,
    layout: BuildLayout,
    lister,
    extractor,
    classifier,
    write_tree,
    make_translator,
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n"})
    config = _config(["de-DE"])

    first = _build(config, layout, lister, extractor, classifier, make_translator(["de-DE"]))
    assert first.failed
    assert first.stage("translate").failed == 1

    retry = make_translator()
    second = _build(config, layout, lister, extractor, classifier, retry)

    assert len(retry.calls) == 1
    assert not second.failed
    assert layout.artifact_path("de-DE", _sha("# Alpha\n")).is_file()


def test_linking_document_is_retranslated_when_its_target_changes(
    source_root: Path,
    layout: BuildLayout,
    lister,
    extractor,
    classifier,
    translator,
    write_tree,
    make_translator,
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n", "b.md": "# Beta\n[A](a.md)\n"})
    config = _config(["fr-FR"])
    _build(config, layout, lister, extractor, classifier, translator)
    beta_hash = _sha("# Beta\n[A](a.md)\n")
    before = Registry(layout.registry_path).load().find_by_hash(beta_hash)
    assert before is not None

    write_tree(source_root, {"a.md": "# Alpha, revised\n"})
    second_translator = make_translator()
    _build(config, layout, lister, extractor, classifier, second_translator)

    after = Registry(layout.registry_path).load().find_by_hash(beta_hash)
    new_alpha = _sha("# Alpha, revised\n")
    assert after is not None
    assert after.materialized_hash != before.materialized_hash
    assert after.translations["fr-FR"].source_hash == after.materialized_hash
    translated = [content for content, _ in second_translator.calls]
    assert len(translated) == 2
    assert any(f"[A](hashpress://{new_alpha})" in content for content in translated)
    beta_fr = layout.artifact_path("fr-FR", beta_hash).read_text(encoding="utf-8")
    assert f"hashpress://{new_alpha}" in beta_fr

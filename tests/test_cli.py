"""CLI tests for build, status and clean."""

import json
import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from hashpress.cli import cli


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    for key in list(env):
        if key.startswith("HASHPRESS__"):
            env[key] = None
    return env


@pytest.fixture
def fake_build(monkeypatch, extractor, classifier, translator, make_lister):
    """Replace the language-model collaborators and git listing with fakes."""
    monkeypatch.setattr(
        "hashpress.cli._build_collaborators",
        lambda config: (extractor, classifier, translator),
    )
    monkeypatch.setattr("hashpress.ingestion.scanner.GitFileLister", make_lister)
    return extractor, classifier, translator


def test_cli_help_displays_commands() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])

    assert result.exit_code == 0
    assert "hashpress turns a markdown tree" in result.output
    for command in ("build", "status", "clean", "config"):
        assert command in result.output


def test_build_writes_registry_and_artifacts(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n", "b.md": "# Beta\n[Alpha](a.md)\n"})
    runner = CliRunner()

    result = runner.invoke(
        cli, ["build", str(source_root), "--lang", "ja-JP"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code == 0, result.output
    assert "entries=2" in result.output
    registry = json.loads((source_root / ".hashpress" / "registry.json").read_text("utf-8"))
    assert len(registry["entries"]) == 2
    assert len(list((source_root / ".hashpress" / "src" / "ja-JP").glob("*.md"))) == 2
    assert (source_root / ".hashpress" / "hashpress.log").exists()
    _, _, translator = fake_build
    assert {language for _, language in translator.calls} == {"ja-JP"}


def test_build_json_reports_stages(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n"})
    runner = CliRunner()

    result = runner.invoke(cli, ["build", str(source_root), "--json"], env=_env_with_home(tmp_path))

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["entries"] == 1
    assert payload["failed"] == 0
    assert payload["context"]["languages"] == []
    assert [stage["stage"] for stage in payload["stages"]] == [
        "scan",
        "enrich",
        "categorize",
        "materialize",
        "translate",
    ]


def test_build_output_option_relocates_state(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n"})
    state_dir = tmp_path / "state"
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["build", str(source_root), "--output", str(state_dir), "--quiet"],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code == 0, result.output
    assert (state_dir / "registry.json").exists()
    assert not (source_root / ".hashpress").exists()


def test_build_rejects_output_that_contains_the_root(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n", "notes/keep.md": "# Keep\n"})
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["build", str(source_root), "-o", str(source_root)],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "must not contain the source root" in result.output
    assert not (source_root / "registry.json").exists()
    assert (source_root / "notes" / "keep.md").exists()
    extractor, _, _ = fake_build
    assert extractor.calls == []


def test_build_missing_root_fails(tmp_path: Path, fake_build) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["build", str(tmp_path / "missing"), "--json"], env=_env_with_home(tmp_path)
    )

    assert result.exit_code != 0
    payload = json.loads(result.stdout)
    assert payload["error"]["code"] == "scan_error"


def test_build_rejects_missing_template(tmp_path: Path, source_root: Path, fake_build) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli,
        ["build", str(source_root), "--template", str(tmp_path / "nope.html")],
        env=_env_with_home(tmp_path),
    )

    assert result.exit_code != 0
    assert "does not exist" in result.output


def test_status_reports_counts_as_json(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n", "b.md": "# Beta\n"})
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["build", str(source_root), "--lang", "fr-FR", "--quiet"], env=env)

    result = runner.invoke(cli, ["status", str(source_root), "--json"], env=env)

    assert result.exit_code == 0, result.output
    payload = json.loads(result.stdout)
    assert payload["counts"] == {
        "entries": 2,
        "enriched": 2,
        "categorized": 2,
        "materialized": 2,
    }
    assert payload["categories"] == ["General"]
    assert payload["translations"] == {"fr-FR": 2}


def test_status_without_registry_fails(tmp_path: Path, source_root: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["status", str(source_root)], env=_env_with_home(tmp_path))

    assert result.exit_code != 0
    assert "No registry found" in result.output


def test_clean_removes_artifacts_then_state(
    tmp_path: Path, source_root: Path, write_tree, fake_build
) -> None:
    write_tree(source_root, {"a.md": "# Alpha\n"})
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    runner.invoke(cli, ["build", str(source_root), "--quiet"], env=env)
    state_dir = source_root / ".hashpress"

    result = runner.invoke(cli, ["clean", str(source_root)], env=env)

    assert result.exit_code == 0
    assert not (state_dir / "src").exists()
    assert (state_dir / "registry.json").exists()

    result = runner.invoke(cli, ["clean", str(source_root), "--all"], env=env)

    assert result.exit_code == 0
    assert not state_dir.exists()

    result = runner.invoke(cli, ["clean", str(source_root)], env=env)

    assert result.exit_code == 0
    assert "Nothing to clean" in result.output

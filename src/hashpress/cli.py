"""Command line interface for hashpress."""

from __future__ import annotations

import difflib
import shutil
from collections import Counter
from pathlib import Path
from typing import Any, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from hashpress.classification import CategoryClassifier, DSPyCategoryClassifier
from hashpress.config import ConfigError, ConfigManager, HashpressConfig, resolve_with_precedence
from hashpress.enrichment import DSPyMetadataExtractor, MetadataExtractor
from hashpress.ingestion import ScanError
from hashpress.layout import BuildLayout, LayoutError
from hashpress.logs import configure_logging
from hashpress.pipeline import BuildPipeline, BuildReport
from hashpress.registry import Registry
from hashpress.translation import DocumentTranslator, DSPyDocumentTranslator

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    important_modes = {"summary", "warning", "error"}
    if summary_only and mode not in important_modes:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Target root path relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _resolve_output_modes(
    ctx: click.Context,
    config: HashpressConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults for quiet and summary output.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only flags.

    Raises:
        click.ClickException: If the requested modes conflict.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _assign_nested(target: dict[str, Any], path: list[str], value: Any) -> None:
    """Assign a nested value within a dictionary for a dotted path.

    Raises:
        ConfigError: If a non-mapping value is encountered along the path.
    """

    node = target
    for segment in path[:-1]:
        existing = node.get(segment)
        if existing is None:
            existing = {}
            node[segment] = existing
        elif not isinstance(existing, dict):
            raise ConfigError(
                f"Cannot assign into '{segment}' because it is not a mapping in the config file."
            )
        node = existing
    node[path[-1]] = value


def _config_manager(config_path: Optional[str]) -> ConfigManager:
    return ConfigManager(Path(config_path) if config_path else None)


def _layout_for(root: str, config: HashpressConfig, output: Optional[str]) -> BuildLayout:
    try:
        return BuildLayout.for_root(
            Path(root),
            state_dirname=config.build.state_dirname,
            state_dir=Path(output) if output else None,
        )
    except LayoutError as exc:
        raise click.ClickException(str(exc)) from exc


def _build_collaborators(
    config: HashpressConfig,
) -> tuple[MetadataExtractor, CategoryClassifier, DocumentTranslator]:
    """Instantiate the language-model collaborators used by the build.

    Args:
        config: Resolved configuration.

    Returns:
        tuple: Metadata extractor, category classifier and document translator.
    """
    return (
        DSPyMetadataExtractor(config.llm, config.enrichment),
        DSPyCategoryClassifier(config.llm),
        DSPyDocumentTranslator(config.llm),
    )


def _report_payload(report: BuildReport) -> list[dict[str, Any]]:
    return [stage.model_dump(mode="json") for stage in report.stages]


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="hashpress")
def cli() -> None:
    """hashpress turns a markdown tree into hash-addressed, translated documents."""


@cli.command()
@click.argument("root", required=False, default=".", type=click.Path(path_type=str))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="State directory holding the registry and artifacts.",
)
@click.option(
    "-l",
    "--lang",
    "languages",
    multiple=True,
    help="Target language code (repeatable), e.g. -l en-US -l ja-JP.",
)
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging.")
@click.option(
    "-t",
    "--template",
    type=click.Path(exists=True, path_type=str),
    help="Template override handed to the rendering layer.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Configuration file to use instead of ~/.hashpress/config.yaml.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the build.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def build(
    ctx: click.Context,
    root: str,
    output: str | None,
    languages: tuple[str, ...],
    verbose: bool,
    template: str | None,
    config_path: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Build hash-addressed documents for the markdown tree at ROOT.

    Args:
        ctx: Click context used for parameter source inspection.
        root: Source root directory (defaults to the current directory).
        output: Optional state directory override.
        languages: Target languages replacing the configured ones.
        verbose: Enable debug logging.
        template: Optional template override path.
        config_path: Optional configuration file path.
        json_output: If True, emit JSON describing the build.
        summary_mode: When True, limit output to summary lines and warnings.
        quiet: When True, suppress non-error CLI output entirely.
    """

    json_enabled = json_output
    try:
        overrides: dict[str, Any] = {}
        if languages:
            overrides["build.languages"] = list(languages)
        if template:
            overrides["build.template"] = str(Path(template).expanduser().resolve())

        manager = _config_manager(config_path)
        config = manager.load(cli_overrides=overrides)
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )

        layout = _layout_for(root, config, output)
        configure_logging(
            config.logging,
            state_dir=layout.state_dir if layout.root.is_dir() else None,
            verbose=verbose,
            quiet=json_output or quiet_enabled,
        )

        registry = Registry(layout.registry_path).load()
        extractor, classifier, translator = _build_collaborators(config)
        pipeline = BuildPipeline(
            config,
            layout,
            registry,
            extractor=extractor,
            classifier=classifier,
            translator=translator,
        )
        report = pipeline.run()

        if json_output:
            console.print_json(
                data={
                    "context": {
                        "root": str(layout.root),
                        "state_dir": str(layout.state_dir),
                        "languages": config.build.languages,
                        "template": config.build.template,
                    },
                    "entries": len(registry),
                    "stages": _report_payload(report),
                    "failed": report.failed,
                }
            )
            return

        table = Table(title=f"Build for {layout.root}")
        table.add_column("Stage")
        table.add_column("Processed", justify="right")
        table.add_column("Skipped", justify="right")
        table.add_column("Failed", justify="right")
        for stage in report.stages:
            table.add_row(stage.stage, str(stage.processed), str(stage.skipped), str(stage.failed))
        _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        if report.errors:
            _emit_message(
                "[red]Errors encountered:[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for message in report.errors:
                _emit_message(
                    f"  - {message}", mode="error", quiet=quiet_enabled, summary_only=summary_only
                )

        scan = report.stage("scan")
        _emit_message(
            _format_summary_line(
                "Build",
                layout.root,
                {
                    "entries": len(registry),
                    "added": scan.counts.get("added", 0),
                    "moved": scan.counts.get("moved", 0),
                    "evicted": scan.counts.get("evicted", 0),
                    "failed": report.failed,
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except ScanError as exc:
        _handle_cli_error(str(exc), code="scan_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)
    except RuntimeError as exc:
        _handle_cli_error(str(exc), code="llm_error", json_output=json_enabled, original=exc)


@cli.command()
@click.argument("root", required=False, default=".", type=click.Path(path_type=str))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="State directory holding the registry and artifacts.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Configuration file to use instead of ~/.hashpress/config.yaml.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit status information as JSON.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def status(
    ctx: click.Context,
    root: str,
    output: str | None,
    config_path: str | None,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Display registry counts for the markdown tree at ROOT."""

    json_enabled = json_output
    try:
        config = _config_manager(config_path).load()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        layout = _layout_for(root, config, output)
        if not layout.registry_path.exists():
            raise click.ClickException(
                f"No registry found for {layout.root}. Run `hashpress build {layout.root}` first."
            )

        registry = Registry(layout.registry_path).load()
        entries = registry.entries
        translations: Counter[str] = Counter()
        for entry in entries:
            translations.update(entry.translations.keys())
        categories = sorted({entry.category for entry in entries if entry.category})

        counts = {
            "entries": len(entries),
            "enriched": sum(1 for entry in entries if entry.metadata is not None),
            "categorized": sum(1 for entry in entries if entry.category),
            "materialized": sum(1 for entry in entries if entry.materialized_hash),
        }

        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(layout.root), "state_dir": str(layout.state_dir)},
                    "counts": counts,
                    "categories": categories,
                    "translations": dict(sorted(translations.items())),
                    "updated_at": (
                        registry.updated_at.isoformat() if registry.updated_at else None
                    ),
                }
            )
            return

        table = Table(title=f"Status for {layout.root}")
        table.add_column("Metric")
        table.add_column("Value", justify="right")
        table.add_row("Entries", str(counts["entries"]))
        table.add_row("Enriched", str(counts["enriched"]))
        table.add_row("Categorized", str(counts["categorized"]))
        table.add_row("Materialized", str(counts["materialized"]))
        table.add_row("Categories", ", ".join(categories) or "-")
        for language, count in sorted(translations.items()):
            table.add_row(f"Translations ({language})", str(count))
        if registry.updated_at is not None:
            table.add_row("Last updated", registry.updated_at.isoformat())
        _emit_message(table, mode="detail", quiet=quiet_enabled, summary_only=summary_only)

        _emit_message(
            _format_summary_line("Status", layout.root, counts),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_enabled, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_enabled, original=exc)


@cli.command()
@click.argument("root", required=False, default=".", type=click.Path(path_type=str))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=str),
    help="State directory holding the registry and artifacts.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=str),
    help="Configuration file to use instead of ~/.hashpress/config.yaml.",
)
@click.option("--all", "remove_all", is_flag=True, help="Also remove the registry and logs.")
def clean(root: str, output: str | None, config_path: str | None, remove_all: bool) -> None:
    """Remove generated artifacts for the markdown tree at ROOT.

    Args:
        root: Source root directory.
        output: Optional state directory override.
        config_path: Optional configuration file path.
        remove_all: Remove the whole state directory instead of only the artifacts.
    """
    try:
        config = _config_manager(config_path).load()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    layout = _layout_for(root, config, output)
    target = layout.state_dir if remove_all else layout.artifacts_dir
    if not target.exists():
        console.print(f"[yellow]Nothing to clean at {target}.[/yellow]")
        return

    shutil.rmtree(target)
    console.print(f"[green]Removed {target}.[/green]")


@cli.group()
def config() -> None:
    """Manage hashpress configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules.

    Args:
        no_env: If True, ignore environment-derived overrides.

    Raises:
        click.ClickException: If configuration cannot be loaded.
    """
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        config = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(config.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path describing the configuration field to update.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'build.languages'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        _assign_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=HashpressConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    diff = list(
        difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    # The timestamp line always changes; anything beyond it is a real edit.
    changed = [
        line
        for line in diff
        if line[:1] in {"+", "-"}
        and not line.startswith(("+++", "---"))
        and "# Last updated:" not in line
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an interactive editor session.

    Raises:
        click.ClickException: If edited content is invalid or cannot be saved.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")

    if edited is None:
        console.print("[yellow]Edit cancelled; no changes applied.[/yellow]")
        return

    if edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc

    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=HashpressConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()

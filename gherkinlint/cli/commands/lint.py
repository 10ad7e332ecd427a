"""Lint CLI commands."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from gherkinlint.document.dialect import get_dialect_table
from gherkinlint.rules.config import LintConfig, find_config
from gherkinlint.rules.engine import AnalysisSession, SessionResult
from gherkinlint.rules.registry import default_registry
from gherkinlint.rules.schemas import RuleSeverity

console = Console()

SEVERITY_STYLES = {
    RuleSeverity.BLOCKER: "bold red",
    RuleSeverity.CRITICAL: "red",
    RuleSeverity.MAJOR: "yellow",
    RuleSeverity.MINOR: "blue",
    RuleSeverity.INFO: "dim",
}


def discover_feature_files(paths: tuple[Path, ...] | list[Path]) -> list[Path]:
    """Expand paths into feature files.

    Directories are searched recursively for ``*.feature`` files, in
    sorted order; files are taken as given. Duplicates are dropped.
    """
    found: dict[Path, None] = {}
    for path in paths:
        if path.is_dir():
            for feature_file in sorted(path.rglob("*.feature")):
                found.setdefault(feature_file, None)
        else:
            found.setdefault(path, None)
    return list(found)


def load_lint_config(config_path: Path | None) -> LintConfig:
    """Load the given config, or the nearest one above the working directory."""
    if config_path is None:
        config_path = find_config(Path.cwd())
    if config_path is None:
        return LintConfig()
    return LintConfig.load(config_path)


@click.command("lint")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Config file (default: nearest .gherkin-lint.yaml)",
)
@click.option("--workers", default=1, show_default=True, type=click.IntRange(min=1), help="Worker threads")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
@click.option("--strict", is_flag=True, help="Fail on any diagnostic")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
def lint_command(
    paths: tuple[Path, ...],
    config_path: Path | None,
    workers: int,
    output_json: bool,
    strict: bool,
    verbose: bool,
):
    """Lint Gherkin feature files.

    Examples:

        gherkin-lint lint features/

        gherkin-lint lint login.feature checkout.feature --strict

        gherkin-lint lint features/ --config ci.gherkin-lint.yaml --workers 4
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    files = discover_feature_files(paths)
    if not files:
        console.print("[yellow]No feature files found[/yellow]")
        return

    config = load_lint_config(config_path)
    session = AnalysisSession.from_config(config, max_workers=workers)
    result = session.run((str(path), path.read_bytes()) for path in files)

    if output_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        print_result(result)

    if result.error_count > 0 or (strict and result.total > 0):
        raise SystemExit(1)


def print_result(result: SessionResult) -> None:
    """Print one table per file with diagnostics, then a summary."""
    for document in result.documents:
        diagnostics = result.diagnostics_for(document.uri)
        if not diagnostics:
            continue

        console.print(f"\n[bold]{document.uri}[/bold]")

        table = Table(show_header=True)
        table.add_column("Severity", style="bold")
        table.add_column("Rule")
        table.add_column("Message")
        table.add_column("Line")

        for diagnostic in diagnostics:
            style = SEVERITY_STYLES[diagnostic.severity]
            line = str(diagnostic.line) if diagnostic.line is not None else "-"
            column = getattr(diagnostic, "column", None)
            if column is not None:
                line += f":{column}"
            table.add_row(
                f"[{style}]{diagnostic.severity.value}[/{style}]",
                diagnostic.rule_id,
                diagnostic.message,
                line,
            )

        console.print(table)

    # Summary
    console.print()
    console.print(f"Files: {len(result.documents)}", end=" ")
    for severity, count in result.count_by_severity().items():
        if count > 0:
            style = SEVERITY_STYLES[severity]
            console.print(f"[{style}]{severity.value.capitalize()}: {count}[/{style}]", end=" ")
    if result.total == 0:
        console.print("[green]No issues found[/green]", end=" ")
    console.print()


@click.command("rules")
def rules_command():
    """List available rules."""
    registry = default_registry()

    table = Table(title="Rules")
    table.add_column("Rule ID", style="cyan")
    table.add_column("Name")
    table.add_column("Severity")
    table.add_column("Scope")
    table.add_column("Parameters")
    table.add_column("Enabled")

    for definition in registry.list_rules():
        style = SEVERITY_STYLES[definition.severity]
        parameters = ", ".join(f"{k}={v}" for k, v in definition.parameters.items())
        table.add_row(
            definition.rule_id,
            definition.name,
            f"[{style}]{definition.severity.value}[/{style}]",
            "project" if definition.cross_document else "file",
            parameters or "-",
            "yes" if definition.enabled else "no",
        )

    console.print(table)


@click.command("languages")
def languages_command():
    """List supported Gherkin languages."""
    dialects = get_dialect_table()

    table = Table(title="Languages")
    table.add_column("Code", style="cyan")
    table.add_column("Name")
    table.add_column("Native")

    for code in dialects.languages():
        dialect = dialects.resolve(code)
        table.add_row(code, dialect.name, dialect.native)

    console.print(table)

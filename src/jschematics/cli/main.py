"""
jschematics CLI
================
Command-line interface for the jschematics library.

Commands:
    check        Parse a schema document and report misplaced keywords
    validate     Validate instance documents against a schema
    normalize    Re-emit a schema as canonical JSON
    conformance  Run JSON-Schema-Test-Suite fixtures against the engine
    version      Show version information

Usage::

    jschematics check person.schema.json
    jschematics validate person.schema.json alice.json bob.json --json-output
    jschematics conformance JSON-Schema-Test-Suite/tests/draft2020-12 --baseline baseline.json

Exit codes: 0 success, 1 invalid instance / regression, 2 fatal engine or
loading error.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..config.logging import configure_logging
from ..config.settings import EngineSettings
from ..exceptions import (
    InvalidSchemaException,
    NotYetImplemented,
    RecursionLimitExceeded,
    SchemaLoadingError,
    UnresolvableReference,
)

console = Console()

FATAL_ERRORS = (
    InvalidSchemaException,
    SchemaLoadingError,
    UnresolvableReference,
    NotYetImplemented,
    RecursionLimitExceeded,
)


def _fail(message: str, code: int = 2) -> None:
    console.print(f"[red]{escape(message)}[/red]")
    sys.exit(code)


@click.group()
@click.version_option(version=__version__, prog_name="jschematics")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.option("--log-json", is_flag=True, help="Log as JSON lines to stderr")
def cli(verbose: bool, log_json: bool) -> None:
    """
    jschematics – JSON Schema (draft 2020-12) engine.

    Typed schema model, parser, serializer and validator.
    """
    configure_logging(verbose=verbose, log_json=log_json)


# ---------------------------------------------------------------------------
# check
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("schema_path", type=click.Path(path_type=Path))
def check(schema_path: Path) -> None:
    """Parse a schema document and report the first invalid keyword."""
    from ..io.loader import load_document

    try:
        document = load_document(schema_path)
    except InvalidSchemaException as e:
        console.print(Panel(
            f"[bold]{escape(schema_path.name)}[/bold]\n"
            f"Pointer: [cyan]{escape(e.pointer)}[/cyan]  |  Keyword: [cyan]{escape(e.keyword)}[/cyan]\n"
            f"{escape(e.reason)}",
            title="[red]Invalid schema[/red]",
            border_style="red",
        ))
        sys.exit(1)
    except SchemaLoadingError as e:
        _fail(str(e))

    console.print(Panel(
        f"[bold]{escape(schema_path.name)}[/bold]\n"
        f"Dialect: {escape(document.dialect)}\n"
        f"Root: [cyan]{document.root.kind.value}[/cyan]  |  "
        f"Nodes: [cyan]{len(document.index)}[/cyan]  |  "
        f"$defs: [cyan]{len(document.defs)}[/cyan]",
        title="[green]Schema OK[/green]",
        border_style="green",
    ))


# ---------------------------------------------------------------------------
# validate
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("schema_path", type=click.Path(path_type=Path))
@click.argument("instances", nargs=-1, required=True, type=click.Path(path_type=Path))
@click.option("--json-output", is_flag=True, help="Output results as JSON")
@click.option("--no-formats", is_flag=True, help="Treat `format` as an annotation only")
@click.option("--max-depth", type=click.IntRange(min=1), default=None, help="Recursion ceiling (default 200)")
def validate(
    schema_path: Path,
    instances: tuple[Path, ...],
    json_output: bool,
    no_formats: bool,
    max_depth: int | None,
) -> None:
    """Validate INSTANCES against the schema at SCHEMA_PATH."""
    from ..io.loader import load_document, load_json
    from ..validator.engine import Validator

    settings = EngineSettings.from_cli(
        max_depth=max_depth,
        assert_formats=False if no_formats else None,
    )
    results = []
    try:
        validator = Validator(load_document(schema_path), settings)
        for path in instances:
            with structlog.contextvars.bound_contextvars(instance=str(path)):
                results.append((path, validator.evaluate(load_json(path))))
    except FATAL_ERRORS as e:
        _fail(str(e))

    all_passed = all(r.passed for _, r in results)

    if json_output:
        output: dict[str, Any] = {
            "schema": str(schema_path),
            "passed": all_passed,
            "results": [{"instance": str(p), **r.to_dict()} for p, r in results],
        }
        click.echo(json.dumps(output, indent=2))
    else:
        console.print()
        t = Table(box=box.SIMPLE, title=f"Validation against {escape(schema_path.name)}")
        t.add_column("Instance")
        t.add_column("Status")
        t.add_column("Issues")
        for path, r in results:
            status_cell = "[green]✓ PASS[/green]" if r.passed else "[red]✗ FAIL[/red]"
            keywords = ", ".join(sorted(r.keywords)[:3])
            if len(r.keywords) > 3:
                keywords += f" +{len(r.keywords) - 3}"
            t.add_row(escape(path.name), status_cell, escape(keywords) or "—")
        console.print(t)

        for path, r in results:
            if r.issues:
                console.print(f"\n[bold]{escape(path.name)}:[/bold]")
                for issue in r.issues:
                    console.print(
                        f"  [red]{escape(issue.keyword)}[/red] "
                        f"{escape(issue.instance_path)}: {escape(issue.message)} "
                        f"[dim]({escape(issue.schema_path)})[/dim]"
                    )
        console.print()

    sys.exit(0 if all_passed else 1)


# ---------------------------------------------------------------------------
# normalize
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("schema_path", type=click.Path(path_type=Path))
@click.option("--output", "-o", type=click.Path(path_type=Path), default=None,
              help="Write to this file instead of stdout")
@click.option("--indent", type=int, default=2, show_default=True)
def normalize(schema_path: Path, output: Path | None, indent: int) -> None:
    """Parse a schema and re-emit it as canonical JSON."""
    from ..io.loader import load_document
    from ..serializer.schema_serializer import dumps

    try:
        text = dumps(load_document(schema_path), indent=indent)
    except (InvalidSchemaException, SchemaLoadingError) as e:
        _fail(str(e))

    if output is None:
        click.echo(text)
        return
    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]✓[/green] Normalized schema written to [bold]{escape(str(output))}[/bold]")


# ---------------------------------------------------------------------------
# conformance
# ---------------------------------------------------------------------------


@cli.command()
@click.argument("suite_dir", type=click.Path(path_type=Path))
@click.option("--baseline", type=click.Path(path_type=Path), default=None,
              help="Pinned per-file pass counts to compare against")
@click.option("--update-baseline", is_flag=True, help="Rewrite --baseline from this run")
@click.option("--strict", is_flag=True, help="Exit with code 1 on any FAIL or ERROR")
@click.option("--json-output", is_flag=True, help="Output the report as JSON")
@click.option("--include-remote", is_flag=True, help="Do not ignore remote-ref fixtures")
def conformance(
    suite_dir: Path,
    baseline: Path | None,
    update_baseline: bool,
    strict: bool,
    json_output: bool,
    include_remote: bool,
) -> None:
    """Run the fixture files below SUITE_DIR."""
    from ..conformance.harness import DEFAULT_IGNORE, ConformanceRunner, load_baseline, save_baseline

    if update_baseline and baseline is None:
        _fail("--update-baseline requires --baseline")

    runner = ConformanceRunner()
    try:
        report = runner.run_directory(suite_dir, ignore=() if include_remote else DEFAULT_IGNORE)
        pinned = load_baseline(baseline) if baseline is not None and not update_baseline else {}
    except SchemaLoadingError as e:
        _fail(str(e))

    regressions = report.regressions(pinned)
    if update_baseline:
        save_baseline(report, baseline)

    if json_output:
        output = report.to_dict()
        output["regressions"] = {k: list(v) for k, v in regressions.items()}
        click.echo(json.dumps(output, indent=2))
    else:
        console.print()
        counts = report.counts()
        console.print(Panel(
            f"[bold]{escape(str(suite_dir))}[/bold]\n"
            + "  |  ".join(f"{k.value}: [cyan]{v}[/cyan]" for k, v in counts.items()),
            title="Conformance",
            border_style="blue",
        ))

        t = Table(box=box.SIMPLE, title="Per-file results")
        t.add_column("File")
        t.add_column("Pass", justify="right")
        t.add_column("Cases", justify="right")
        t.add_column("Baseline", justify="right")
        totals: dict[str, int] = {}
        for o in report.outcomes:
            totals[o.file] = totals.get(o.file, 0) + 1
        for name, passed in report.pass_counts().items():
            pinned_count = pinned.get(name)
            style = "red" if name in regressions else "green" if passed == totals[name] else "yellow"
            t.add_row(
                escape(name),
                f"[{style}]{passed}[/{style}]",
                str(totals[name]),
                "—" if pinned_count is None else str(pinned_count),
            )
        console.print(t)

        if regressions:
            console.print("\n[bold red]Regressions:[/bold red]")
            for name, (was, now) in regressions.items():
                console.print(f"  {escape(name)}: {was} → {now}")
        if update_baseline:
            console.print(f"\n[green]✓[/green] Baseline written to [bold]{escape(str(baseline))}[/bold]")
        console.print()

    exit_code = 0
    if regressions:
        exit_code = 1
    elif strict and report.failures:
        exit_code = 1
    sys.exit(exit_code)


# ---------------------------------------------------------------------------
# version info
# ---------------------------------------------------------------------------


@cli.command("version")
def show_version() -> None:
    """Show version and supported dialect."""
    from ..models.schema import Draft

    console.print(Panel(
        f"[bold cyan]jschematics[/bold cyan] v{__version__}\n\n"
        "JSON Schema engine: typed schema model, parser, serializer, validator\n"
        f"Dialect:  {Draft.DECEMBER_2020.value}\n"
        "Source:   https://github.com/json-schema-org/JSON-Schema-Test-Suite (conformance fixtures)",
        title="jschematics",
        border_style="cyan",
    ))


if __name__ == "__main__":
    cli()

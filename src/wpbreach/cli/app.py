# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Typer CLI application root."""

from __future__ import annotations

import asyncio
import json
import sys
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer

from wpbreach.core.constants import DetectorName, ScanStatus, Severity

app = typer.Typer(
    name="wpbreach",
    help="Static vulnerability scanner for WordPress PHP code",
    no_args_is_help=True,
)


class OutputFormat(StrEnum):
    CONSOLE = "console"
    JSON = "json"


class ExitCode:
    CLEAN = 0
    FINDINGS = 1
    SCAN_ERROR = 2


@app.command()
def scan(
    targets: Annotated[
        list[str], typer.Argument(help="PHP files or directories to scan")
    ],
    categories: Annotated[
        str | None,
        typer.Option("--categories", "-c", help="Comma-separated detectors: sql_injection,xss,general"),
    ] = None,
    workers: Annotated[
        int | None, typer.Option("--workers", "-w", help="Parallel file workers")
    ] = None,
    timeout: Annotated[
        float | None, typer.Option("--timeout", help="Per-file scan budget in seconds")
    ] = None,
    max_file_size: Annotated[
        int | None, typer.Option("--max-file-size", help="Skip files larger than this many bytes")
    ] = None,
    fmt: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format"),
    ] = OutputFormat.CONSOLE,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file path"),
    ] = None,
    fail_on: Annotated[
        Severity | None,
        typer.Option("--fail-on", help="Exit 1 when a finding at or above this severity exists"),
    ] = None,
) -> None:
    """Scan PHP sources for vulnerabilities."""
    exit_code = asyncio.run(
        _async_scan(
            targets,
            categories=categories,
            workers=workers,
            timeout=timeout,
            max_file_size=max_file_size,
            fmt=fmt,
            output=output,
            fail_on=fail_on,
        )
    )
    if exit_code:
        raise typer.Exit(exit_code)


async def _async_scan(
    targets: list[str],
    *,
    categories: str | None,
    workers: int | None,
    timeout: float | None,
    max_file_size: int | None,
    fmt: OutputFormat,
    output: Path | None,
    fail_on: Severity | None,
) -> int:
    from wpbreach.core.config import get_settings
    from wpbreach.core.exceptions import ConfigurationError
    from wpbreach.core.logging import configure_logging
    from wpbreach.scanner.coordinator import ScanCoordinator
    from wpbreach.scanner.severity import severity_at_least

    settings = get_settings()
    configure_logging(settings.log_level, settings.log_format)

    options = {
        "active_categories": categories or list(settings.active_categories),
        "target_paths": targets,
        "worker_count": workers,
        "per_file_timeout": timeout,
        "max_file_size": max_file_size,
    }

    coordinator = ScanCoordinator(settings=settings)
    try:
        coordinator.initialize(options)
    except ConfigurationError as exc:
        typer.echo(f"Configuration error: {exc}", err=True)
        return ExitCode.SCAN_ERROR

    if fmt == OutputFormat.CONSOLE:
        await _scan_with_progress(coordinator)
    else:
        await coordinator.start_scan()

    report = coordinator.get_results()
    coordinator.cleanup()

    if fmt == OutputFormat.CONSOLE:
        from wpbreach.cli.formatters.console import format_scan_report
        format_scan_report(report)
        if output:
            from wpbreach.cli.formatters.json_fmt import format_json
            _write_output(format_json(report), output)
    else:
        from wpbreach.cli.formatters.json_fmt import format_json
        _write_output(format_json(report), output)

    if report.status == ScanStatus.ERROR:
        return ExitCode.SCAN_ERROR
    if fail_on is not None and any(severity_at_least(f.severity, fail_on) for f in report.findings):
        return ExitCode.FINDINGS
    return ExitCode.CLEAN


async def _scan_with_progress(coordinator) -> None:
    from rich.console import Console
    from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(bar_width=40),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=Console(stderr=True),
        transient=True,
    ) as progress:
        task = progress.add_task("Scanning files...", total=None)

        def on_progress(snapshot) -> None:
            progress.update(
                task,
                total=snapshot.total_items or None,
                completed=snapshot.items_processed,
                description=f"Scanning {Path(snapshot.current_item).name or '...'}",
            )

        coordinator.add_listener(on_progress)
        await coordinator.start_scan()


def _write_output(text: str, output: Path | None) -> None:
    if output:
        output.write_text(text)
        typer.echo(f"Output written to {output}")
    else:
        sys.stdout.write(text + "\n")


@app.command()
def rules(
    category: Annotated[
        str | None,
        typer.Option("--category", "-c", help="Category or category/subcategory to list"),
    ] = None,
    stats: Annotated[
        bool, typer.Option("--stats", help="Print registry statistics as JSON")
    ] = False,
) -> None:
    """List the detection rules in the pattern registry."""
    from wpbreach.cli.formatters.console import format_rules
    from wpbreach.patterns.registry import get_registry

    registry = get_registry()
    if stats:
        typer.echo(json.dumps(registry.statistics(), indent=2))
        return

    selected = registry.rules_for_category(category) if category else registry.all_rules()
    if not selected:
        typer.echo(f"No rules found for category: {category}", err=True)
        raise typer.Exit(1)
    format_rules(selected)


@app.command(name="test-pattern")
def test_pattern(
    pattern: Annotated[str, typer.Argument(help="Regular expression to try")],
    file: Annotated[Path, typer.Argument(help="File to run it against")],
) -> None:
    """Try an ad-hoc pattern against a file before adding it as a custom rule."""
    from wpbreach.patterns.registry import PatternRegistry

    if not file.is_file():
        typer.echo(f"File not found: {file}", err=True)
        raise typer.Exit(1)

    result = PatternRegistry.test_pattern(pattern, file.read_text(encoding="utf-8"))
    typer.echo(json.dumps(result, indent=2))
    if not result["valid"]:
        raise typer.Exit(1)


@app.command()
def analyze(
    file: Annotated[Path, typer.Argument(help="PHP file containing the finding")],
    line: Annotated[int, typer.Option("--line", "-l", help="Line number of the finding")],
    detector: Annotated[
        DetectorName | None,
        typer.Option("--detector", "-d", help="Restrict to one detector"),
    ] = None,
) -> None:
    """Print a detailed analysis of the findings on one line as JSON."""
    from wpbreach.core.config import get_settings
    from wpbreach.detectors.builtin import create_detectors
    from wpbreach.patterns.registry import get_registry

    if not file.is_file():
        typer.echo(f"File not found: {file}", err=True)
        raise typer.Exit(1)

    settings = get_settings()
    content = file.read_text(encoding="utf-8")
    names = [detector.value] if detector else list(settings.active_categories)
    detectors = create_detectors(names, registry=get_registry(settings), boosts=settings.confidence_boosts())

    analyses = []
    for det in detectors:
        for finding in det.scan(content, str(file)):
            if finding.line != line:
                continue
            analyses.append(
                {
                    "finding": finding.model_dump(mode="json"),
                    "analysis": det.analyze(finding.code, str(file)).model_dump(mode="json"),
                }
            )

    if not analyses:
        typer.echo(f"No findings on line {line} of {file}")
        return
    typer.echo(json.dumps(analyses, indent=2))


@app.command()
def version() -> None:
    """Show version information."""
    from wpbreach import __version__

    typer.echo(f"wpbreach v{__version__}")

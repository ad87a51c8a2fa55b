# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Rich console output formatter for scan reports."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from wpbreach import __version__
from wpbreach.core.constants import SEVERITY_ORDER, ScanStatus, Severity
from wpbreach.models.rule import PatternRule
from wpbreach.models.scan import ScanReport

console = Console()

SEVERITY_COLORS = {
    Severity.CRITICAL: "bold red",
    Severity.HIGH: "red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}

STATUS_COLORS = {
    ScanStatus.COMPLETED: "bold green",
    ScanStatus.STOPPED: "yellow",
    ScanStatus.ERROR: "bold red",
}


def format_scan_report(report: ScanReport) -> None:
    """Print a scan report to the console with Rich formatting."""
    console.print()
    console.print(f"[bold]wpbreach v{__version__}[/bold] - WordPress Vulnerability Scanner")
    console.print()

    info_table = Table(show_header=False, box=None, padding=(0, 2))
    info_table.add_column("key", style="dim")
    info_table.add_column("value")
    info_table.add_row("Session:", report.session_id)
    info_table.add_row("Detectors:", ", ".join(report.active_categories))
    info_table.add_row("Files:", f"{report.files_scanned}/{report.files_total}")
    console.print(info_table)
    console.print()

    status_color = STATUS_COLORS.get(report.status, "white")
    severity = report.overall_severity or "none"
    console.print(
        Panel(
            f"[{status_color}]{report.status.upper()}[/{status_color}]"
            f"  (overall severity: {severity}, risk score: {report.risk_score}/100)",
            style=status_color,
        )
    )
    if report.failure:
        console.print(f"  Failure: {report.failure}", style="bold red")
    console.print()

    if report.findings:
        for finding in sorted(report.findings, key=lambda f: SEVERITY_ORDER.index(f.severity)):
            sev_color = SEVERITY_COLORS.get(finding.severity, "white")
            sev_label = Text(finding.severity.upper().ljust(9), style=sev_color)

            console.print(sev_label, end="")
            console.print(f"  [bold]{finding.vulnerability_type}/{finding.subtype}[/bold]  {finding.description}")
            console.print(f"          {finding.file}:{finding.line}: {finding.code[:120]}", style="dim")
            console.print(f"          Fix: {finding.recommendation}", style="dim italic")
            console.print(f"          Confidence: {finding.confidence:.2f}", style="dim")
            console.print()
    else:
        console.print("  No vulnerabilities detected.", style="bold green")
        console.print()

    if report.errors:
        error_table = Table(title="Files not scanned")
        error_table.add_column("File", style="cyan")
        error_table.add_column("Error", style="red")
        error_table.add_column("Detail")
        for error in report.errors:
            error_table.add_row(error.file, error.error_type, error.message)
        console.print(error_table)
        console.print()

    counts = report.finding_count_by_severity
    parts = [f"{counts[sev]} {sev}" for sev in SEVERITY_ORDER if sev in counts]
    summary = ", ".join(parts) if parts else "0 findings"
    console.print(f"  Summary: {len(report.findings)} findings ({summary})")
    if report.duration_ms is not None:
        console.print(f"  Duration: {report.duration_ms / 1000:.1f}s")
    if report.errors:
        console.print(f"  Errors: {len(report.errors)}", style="red")
    console.print()


def format_rules(rules: list[PatternRule]) -> None:
    table = Table(title="Detection Rules")
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Severity", style="red")
    table.add_column("Confidence", justify="right")
    table.add_column("CWE")
    table.add_column("Source")
    table.add_column("Description")

    for rule in rules:
        table.add_row(
            rule.key,
            rule.severity,
            f"{rule.confidence:.2f}",
            rule.cwe_id or "-",
            rule.source,
            rule.description,
        )

    console.print(table)
    console.print(f"  {len(rules)} rules")

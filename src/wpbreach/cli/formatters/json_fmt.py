# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""JSON output formatter."""

from __future__ import annotations

import json

from wpbreach.models.scan import ScanReport


def format_json(report: ScanReport) -> str:
    """Return the scan report as formatted JSON string."""
    return report.model_dump_json(indent=2)


def format_json_summary(report: ScanReport) -> str:
    """Return a compact JSON summary (no full findings detail)."""
    data = {
        "session_id": report.session_id,
        "status": report.status,
        "risk_score": report.risk_score,
        "overall_severity": report.overall_severity,
        "finding_count": len(report.findings),
        "finding_count_by_severity": report.finding_count_by_severity,
        "finding_count_by_type": report.finding_count_by_type,
        "files_scanned": report.files_scanned,
        "files_total": report.files_total,
        "error_count": len(report.errors),
        "duration_ms": report.duration_ms,
        "failure": report.failure,
    }
    return json.dumps(data, indent=2)

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Severity aggregation and risk scoring."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from wpbreach.core.constants import SEVERITY_ORDER, SEVERITY_WEIGHTS, Severity

if TYPE_CHECKING:
    from wpbreach.models.finding import Finding


def aggregate_severity(findings: Sequence[Finding]) -> Severity | None:
    """Return the highest severity across all findings, None when there are none."""
    if not findings:
        return None
    return max(findings, key=lambda f: SEVERITY_WEIGHTS[f.severity]).severity


def compute_risk_score(findings: Sequence[Finding]) -> int:
    """Weighted sum of severity * confidence, capped at 100."""
    if not findings:
        return 0
    return min(
        100,
        sum(int(SEVERITY_WEIGHTS[f.severity] * f.confidence) for f in findings),
    )


def count_by_severity(findings: Sequence[Finding]) -> dict[str, int]:
    counts = Counter(str(f.severity) for f in findings)
    return {str(s): counts[str(s)] for s in SEVERITY_ORDER if counts[str(s)]}


def count_by_type(findings: Sequence[Finding]) -> dict[str, int]:
    return dict(sorted(Counter(f.vulnerability_type for f in findings).items()))


def severity_at_least(severity: Severity | str, threshold: Severity | str) -> bool:
    return SEVERITY_WEIGHTS[Severity(severity)] >= SEVERITY_WEIGHTS[Severity(threshold)]


def summarize(findings: Sequence[Finding]) -> dict[str, Any]:
    """Counts and scores consumed by reporting."""
    overall = aggregate_severity(findings)
    return {
        "total": len(findings),
        "by_severity": count_by_severity(findings),
        "by_type": count_by_type(findings),
        "overall_severity": str(overall) if overall else None,
        "risk_score": compute_risk_score(findings),
        "files_affected": len({f.file for f in findings}),
    }

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Scan progress and report models."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field, computed_field

from wpbreach.core.constants import ScanStatus, Severity
from wpbreach.models.finding import FileError, Finding
from wpbreach.scanner.severity import (
    aggregate_severity,
    compute_risk_score,
    count_by_severity,
    count_by_type,
)


class ScanProgress(BaseModel):
    """Point-in-time snapshot of a scan session."""

    session_id: str | None = None
    status: ScanStatus = ScanStatus.IDLE
    percent: float = 0.0
    current_item: str = ""
    items_processed: int = 0
    total_items: int = 0
    findings_count: int = 0
    errors_count: int = 0
    elapsed_ms: int = 0
    estimated_remaining_ms: int | None = None


class ScanReport(BaseModel):
    """Accumulated result of one scan session."""

    session_id: str
    status: ScanStatus
    findings: list[Finding] = Field(default_factory=list)
    errors: list[FileError] = Field(default_factory=list)
    files_scanned: int = 0
    files_total: int = 0
    active_categories: list[str] = Field(default_factory=list)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int | None = None
    failure: str | None = Field(
        default=None,
        description="Cause of a session-fatal error, None unless status is error",
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def risk_score(self) -> int:
        return compute_risk_score(self.findings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def overall_severity(self) -> Severity | None:
        return aggregate_severity(self.findings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def finding_count_by_severity(self) -> dict[str, int]:
        return count_by_severity(self.findings)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def finding_count_by_type(self) -> dict[str, int]:
        return count_by_type(self.findings)

    def findings_for_file(self, file_path: str) -> list[Finding]:
        return [f for f in self.findings if f.file == file_path]


def utcnow() -> datetime:
    return datetime.now(UTC)

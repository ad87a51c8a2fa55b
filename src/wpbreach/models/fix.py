# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fix engine boundary models."""

from __future__ import annotations

import hashlib
from enum import StrEnum

from pydantic import BaseModel, Field

from wpbreach.core.constants import Severity
from wpbreach.models.finding import Finding


class FixStatus(StrEnum):
    AUTO_FIXED = "auto_fixed"
    MANUAL_REQUIRED = "manual_required"
    FAILED = "failed"
    SKIPPED = "skipped"


class VulnerabilityRecord(BaseModel):
    """Persistable view of a finding handed to the fix engine."""

    id: str
    vulnerability_type: str
    subtype: str
    severity: Severity
    confidence: float = Field(ge=0.0, le=1.0)
    file: str
    line: int
    code: str
    description: str = ""
    recommendation: str = ""
    cwe_id: str | None = None
    detector: str = ""

    @classmethod
    def from_finding(cls, finding: Finding) -> VulnerabilityRecord:
        digest = hashlib.sha256(
            f"{finding.file}:{finding.line}:{finding.vulnerability_type}:{finding.subtype}:{finding.code}".encode()
        ).hexdigest()[:12]
        return cls(
            id=f"vuln-{digest}",
            vulnerability_type=finding.vulnerability_type,
            subtype=finding.subtype,
            severity=finding.severity,
            confidence=finding.confidence,
            file=finding.file,
            line=finding.line,
            code=finding.code,
            description=finding.description,
            recommendation=finding.recommendation,
            cwe_id=finding.cwe_id,
            detector=finding.detector,
        )


class SafetyAssessment(BaseModel):
    risk_level: float = Field(ge=0.0, le=1.0)
    factors: list[str] = Field(default_factory=list)
    safe_to_auto_fix: bool = False


class FixResult(BaseModel):
    """Outcome of processing one vulnerability record."""

    vulnerability_id: str
    success: bool = False
    status: FixStatus = FixStatus.SKIPPED
    strategy_used: str | None = None
    fix_id: str | None = None
    backup_id: str | None = None
    actions_taken: list[str] = Field(default_factory=list)
    changes_made: list[dict[str, str]] = Field(default_factory=list)
    manual_instructions: list[str] = Field(default_factory=list)
    safety_assessment: SafetyAssessment | None = None
    error_message: str | None = None
    duration_ms: int = 0


class FixBatchSummary(BaseModel):
    total_processed: int = 0
    auto_fixed: int = 0
    manual_required: int = 0
    failed: int = 0
    skipped: int = 0
    fixes: list[FixResult] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

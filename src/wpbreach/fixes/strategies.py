# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Built-in fix strategies."""

from __future__ import annotations

import logging
import threading
import uuid
from typing import Any

from wpbreach.core.constants import DetectorName
from wpbreach.fixes.base import AppliedFix, FixStrategy, ValidationOutcome
from wpbreach.fixes.guidance import ManualFixGuidance
from wpbreach.fixes.safety import SafetyAssessor
from wpbreach.models.analysis import DetailedAnalysis
from wpbreach.models.fix import SafetyAssessment, VulnerabilityRecord

logger = logging.getLogger("wpbreach.fixes.strategies")


class SuggestionFixStrategy(FixStrategy):
    """Turns a detector's advisory code suggestions into planned changes.

    Files are never modified: ``changes_made`` describes the replacement a
    downstream patcher would perform. Only the dedicated SQL and XSS
    detectors produce suggestions, so registry-rule findings of the same
    types are left for manual review.
    """

    name = "code_suggestion"
    supported_types = frozenset({"sql_injection", "xss"})
    suggesting_detectors = frozenset({DetectorName.SQL_INJECTION.value, DetectorName.XSS.value})

    def __init__(
        self,
        assessor: SafetyAssessor | None = None,
        guidance: ManualFixGuidance | None = None,
    ) -> None:
        self.assessor = assessor or SafetyAssessor()
        self.guidance = guidance or ManualFixGuidance()
        self._applied: dict[str, str] = {}
        self._lock = threading.Lock()

    def can_auto_fix(self, record: VulnerabilityRecord) -> bool:
        return (
            record.vulnerability_type in self.supported_types
            and record.detector in self.suggesting_detectors
            and bool(record.code.strip())
        )

    def assess_fix_safety(self, record: VulnerabilityRecord) -> SafetyAssessment:
        return self.assessor.assess(record)

    def apply_fix(self, record: VulnerabilityRecord, analysis: DetailedAnalysis | None) -> AppliedFix:
        suggestions = analysis.code_suggestions if analysis is not None else []
        if not suggestions:
            return AppliedFix(success=False, error="no code suggestions available")

        fix_id = f"fix-{uuid.uuid4().hex[:12]}"
        changes = [
            {
                "file": record.file,
                "line": str(record.line),
                "type": suggestion.type,
                "original": suggestion.original,
                "replacement": suggestion.secure,
            }
            for suggestion in suggestions
        ]
        actions = [f"Planned {s.type} rewrite at {record.file}:{record.line}" for s in suggestions]

        with self._lock:
            self._applied[fix_id] = record.id
        logger.info("Planned %d change(s) for %s as %s", len(changes), record.id, fix_id)
        return AppliedFix(success=True, fix_id=fix_id, actions_taken=actions, changes_made=changes)

    def validate_fix(self, record: VulnerabilityRecord, applied: AppliedFix) -> ValidationOutcome:
        if not applied.changes_made:
            return ValidationOutcome(success=False, error="fix produced no changes")
        for change in applied.changes_made:
            if not change["replacement"]:
                return ValidationOutcome(success=False, error=f"empty replacement for {change['type']}")
            if change["replacement"] == change["original"]:
                return ValidationOutcome(success=False, error=f"replacement for {change['type']} is unchanged")
        return ValidationOutcome(success=True)

    def rollback_fix(self, fix_id: str, backup: dict[str, Any]) -> bool:
        with self._lock:
            vulnerability_id = self._applied.pop(fix_id, None)
        if vulnerability_id is None:
            return False
        logger.info("Rolled back %s to %s:%s", fix_id, backup.get("file"), backup.get("line"))
        return True

    def generate_manual_instructions(self, record: VulnerabilityRecord) -> list[str]:
        return self.guidance.instructions_for(record)

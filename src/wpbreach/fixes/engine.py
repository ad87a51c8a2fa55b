# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fix engine: decides whether a finding can be fixed automatically.

Processing steps for one vulnerability:

1. find a strategy (exact type, then any strategy that accepts it)
2. confidence gate (``fix_min_confidence``)
3. safety gate (``fix_safety_threshold``)
4. backup
5. apply
6. validate, rolling back when validation fails

Strategy or backup exceptions never escape; they become ``failed`` results.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable, Mapping

from wpbreach.core.config import Settings, get_settings
from wpbreach.core.exceptions import DetectorError, FixError
from wpbreach.detectors.builtin import DetectorRegistry
from wpbreach.fixes.base import BackupStore, FixStrategy, InMemoryBackupStore
from wpbreach.fixes.guidance import ManualFixGuidance
from wpbreach.fixes.safety import SafetyAssessor
from wpbreach.fixes.strategies import SuggestionFixStrategy
from wpbreach.models.analysis import DetailedAnalysis
from wpbreach.models.finding import Finding
from wpbreach.models.fix import FixBatchSummary, FixResult, FixStatus, VulnerabilityRecord
from wpbreach.patterns.registry import PatternRegistry, get_registry

logger = logging.getLogger("wpbreach.fixes.engine")


class FixEngine:
    """Routes vulnerability records through registered fix strategies."""

    def __init__(
        self,
        settings: Settings | None = None,
        backup_store: BackupStore | None = None,
        registry: PatternRegistry | None = None,
        register_defaults: bool = True,
    ) -> None:
        self.settings = settings or get_settings()
        self.backup_store = backup_store or InMemoryBackupStore()
        self.guidance = ManualFixGuidance()
        self._registry = registry
        self._strategies: dict[str, FixStrategy] = {}
        self._fixes: dict[str, FixStrategy] = {}
        self._lock = threading.Lock()

        if register_defaults:
            strategy = SuggestionFixStrategy(
                assessor=SafetyAssessor(self.settings.fix_safety_threshold),
                guidance=self.guidance,
            )
            for vulnerability_type in sorted(strategy.supported_types):
                self.register_strategy(vulnerability_type, strategy)

    def register_strategy(self, vulnerability_type: str, strategy: FixStrategy) -> bool:
        if not vulnerability_type:
            return False
        self._strategies[vulnerability_type] = strategy
        logger.debug("Registered fix strategy %s for %s", strategy.name, vulnerability_type)
        return True

    @property
    def registry(self) -> PatternRegistry:
        if self._registry is None:
            self._registry = get_registry(self.settings)
        return self._registry

    @property
    def strategies(self) -> dict[str, FixStrategy]:
        return dict(self._strategies)

    def find_strategy(self, record: VulnerabilityRecord) -> FixStrategy | None:
        if strategy := self._strategies.get(record.vulnerability_type):
            return strategy
        for strategy in self._strategies.values():
            if strategy.can_auto_fix(record):
                return strategy
        return None

    def analysis_for(self, record: VulnerabilityRecord) -> DetailedAnalysis | None:
        """Ask the detector that produced *record* for a detailed analysis."""
        if not record.detector:
            return None
        try:
            detector_cls = DetectorRegistry.get(record.detector)
        except DetectorError:
            logger.warning("No detector %r to analyze %s", record.detector, record.id)
            return None
        detector = detector_cls(registry=self.registry, boosts=self.settings.confidence_boosts())
        return detector.analyze(record.code, record.file)

    def process_finding(
        self,
        finding: Finding | VulnerabilityRecord,
        analysis: DetailedAnalysis | None = None,
        *,
        manual_only: bool = False,
        safety_override: bool = False,
    ) -> FixResult:
        record = VulnerabilityRecord.from_finding(finding) if isinstance(finding, Finding) else finding
        result = FixResult(vulnerability_id=record.id)
        start = time.monotonic()

        try:
            strategy = self.find_strategy(record)
            if strategy is None:
                result.status = FixStatus.MANUAL_REQUIRED
                result.manual_instructions = self.guidance.instructions_for(record)
                return result

            result.strategy_used = strategy.name

            if manual_only or not strategy.can_auto_fix(record):
                result.status = FixStatus.MANUAL_REQUIRED
                result.manual_instructions = strategy.generate_manual_instructions(record)
                return result

            if record.confidence < self.settings.fix_min_confidence and not safety_override:
                result.status = FixStatus.MANUAL_REQUIRED
                result.manual_instructions = strategy.generate_manual_instructions(record)
                result.actions_taken.append(
                    f"Confidence {record.confidence:.2f} below auto-fix minimum "
                    f"{self.settings.fix_min_confidence:.2f}"
                )
                return result

            safety = strategy.assess_fix_safety(record)
            result.safety_assessment = safety
            too_risky = safety.risk_level > self.settings.fix_safety_threshold or not safety.safe_to_auto_fix
            if too_risky and not safety_override:
                result.status = FixStatus.MANUAL_REQUIRED
                result.manual_instructions = strategy.generate_manual_instructions(record)
                return result

            result.backup_id = self.backup_store.create(record)

            if analysis is None:
                analysis = self.analysis_for(record)

            applied = strategy.apply_fix(record, analysis)
            if not applied.success or applied.fix_id is None:
                raise FixError(f"fix application failed: {applied.error}")

            result.fix_id = applied.fix_id
            with self._lock:
                self._fixes[applied.fix_id] = strategy

            validation = strategy.validate_fix(record, applied)
            if not validation.success:
                if strategy.supports_rollback(record):
                    self.rollback_fix(applied.fix_id, result.backup_id)
                raise FixError(f"fix validation failed: {validation.error}")

            result.actions_taken.extend(applied.actions_taken)
            result.changes_made = applied.changes_made
            result.status = FixStatus.AUTO_FIXED
            result.success = True

        except Exception as exc:
            result.status = FixStatus.FAILED
            result.success = False
            result.error_message = str(exc)
            logger.error("Fix for %s failed: %s", record.id, exc)
        finally:
            result.duration_ms = int((time.monotonic() - start) * 1000)

        return result

    def process_findings(
        self,
        findings: Iterable[Finding | VulnerabilityRecord],
        analyses: Mapping[str, DetailedAnalysis] | None = None,
        *,
        manual_only: bool = False,
        safety_override: bool = False,
    ) -> FixBatchSummary:
        """Process a batch. *analyses* maps vulnerability ids to precomputed analyses."""
        summary = FixBatchSummary()
        analyses = analyses or {}

        for finding in findings:
            record = VulnerabilityRecord.from_finding(finding) if isinstance(finding, Finding) else finding
            result = self.process_finding(
                record,
                analyses.get(record.id),
                manual_only=manual_only,
                safety_override=safety_override,
            )
            summary.fixes.append(result)
            summary.total_processed += 1
            if result.status is FixStatus.AUTO_FIXED:
                summary.auto_fixed += 1
            elif result.status is FixStatus.MANUAL_REQUIRED:
                summary.manual_required += 1
            elif result.status is FixStatus.FAILED:
                summary.failed += 1
                if result.error_message:
                    summary.errors.append(result.error_message)
            else:
                summary.skipped += 1

        logger.info(
            "Processed %d vulnerabilities: auto_fixed=%d manual=%d failed=%d",
            summary.total_processed,
            summary.auto_fixed,
            summary.manual_required,
            summary.failed,
        )
        return summary

    def rollback_fix(self, fix_id: str, backup_id: str | None) -> bool:
        with self._lock:
            strategy = self._fixes.get(fix_id)
        if strategy is None:
            logger.warning("Rollback of %s refused: unknown fix", fix_id)
            return False

        backup = self.backup_store.get(backup_id) if backup_id else None
        if backup is None:
            logger.warning("Rollback of %s refused: backup %s not found", fix_id, backup_id)
            return False

        try:
            rolled_back = strategy.rollback_fix(fix_id, backup)
        except Exception as exc:
            logger.error("Rollback of %s failed: %s", fix_id, exc)
            return False

        if rolled_back:
            with self._lock:
                self._fixes.pop(fix_id, None)
            logger.info("Rolled back %s from %s", fix_id, backup_id)
        return rolled_back

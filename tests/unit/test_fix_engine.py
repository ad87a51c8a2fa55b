# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Tests for the fix engine, its safety gate and the built-in strategy."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from wpbreach.core.config import Settings
from wpbreach.core.constants import Severity
from wpbreach.detectors.general import GeneralPatternDetector
from wpbreach.detectors.sql_injection import SqlInjectionDetector, SqlPatternType
from wpbreach.fixes import (
    AppliedFix,
    BackupStore,
    FixEngine,
    FixStrategy,
    InMemoryBackupStore,
    ManualFixGuidance,
    SafetyAssessor,
    SuggestionFixStrategy,
    ValidationOutcome,
)
from wpbreach.fixes.guidance import FALLBACK_STEPS, TYPE_STEPS
from wpbreach.models import DetailedAnalysis, FixStatus, SafetyAssessment, VulnerabilityRecord
from wpbreach.patterns.registry import get_registry

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures" / "php"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_record(**overrides: Any) -> VulnerabilityRecord:
    data: dict[str, Any] = {
        "id": "vuln-000000000001",
        "vulnerability_type": "xss",
        "subtype": "direct_output",
        "severity": Severity.HIGH,
        "confidence": 0.9,
        "file": "wp-content/plugins/greeter/greeting.php",
        "line": 1,
        "code": "echo $_GET['name'];",
        "recommendation": "Use esc_html() to escape HTML content before output",
        "detector": "xss",
    }
    data.update(overrides)
    return VulnerabilityRecord(**data)


class RecordingStrategy(FixStrategy):
    """Strategy whose behaviour is driven by constructor flags."""

    name = "recording"
    supported_types = frozenset({"code_injection"})

    def __init__(self, *, raise_on_apply: bool = False, unchanged: bool = False) -> None:
        self.raise_on_apply = raise_on_apply
        self.unchanged = unchanged
        self.rolled_back: list[str] = []

    def can_auto_fix(self, record):
        return record.vulnerability_type in self.supported_types

    def assess_fix_safety(self, record):
        return SafetyAssessment(risk_level=0.1, safe_to_auto_fix=True)

    def apply_fix(self, record, analysis):
        if self.raise_on_apply:
            raise RuntimeError("patcher crashed")
        replacement = record.code if self.unchanged else "/* removed */"
        return AppliedFix(
            success=True,
            fix_id="fix-recording",
            actions_taken=["Removed eval()"],
            changes_made=[{"type": "remove_eval", "original": record.code, "replacement": replacement}],
        )

    def validate_fix(self, record, applied):
        change = applied.changes_made[0]
        if change["replacement"] == change["original"]:
            return ValidationOutcome(success=False, error="nothing changed")
        return ValidationOutcome(success=True)

    def rollback_fix(self, fix_id, backup):
        self.rolled_back.append(fix_id)
        return True

    def generate_manual_instructions(self, record):
        return ["Remove the eval() call"]


@pytest.fixture
def engine(settings, registry):
    return FixEngine(settings=settings, registry=registry)


@pytest.fixture
def concatenated_query_finding(registry):
    content = (FIXTURES_DIR / "vulnerable" / "member_lookup.php").read_text()
    findings = SqlInjectionDetector(registry=registry).scan(content, "wp-content/plugins/members/member_lookup.php")
    return next(f for f in findings if f.subtype == SqlPatternType.DIRECT_INPUT)


# ===========================================================================
# Safety assessment
# ===========================================================================

class TestSafetyAssessor:

    def test_plugin_file_is_safe(self):
        assessment = SafetyAssessor().assess(_make_record())
        # (0.6*0.3 + 0.1*0.25 + 0.3*0.25 + 0.4*0.2) / 1.0
        assert assessment.risk_level == pytest.approx(0.36)
        assert assessment.safe_to_auto_fix is True
        assert assessment.factors == ["high severity vulnerability"]

    @pytest.mark.parametrize(
        "path, kind",
        [
            ("wp-includes/query.php", "core_files"),
            ("/var/www/html/wp-admin/options.php", "core_files"),
            ("C:\\sites\\blog\\wp-admin\\admin.php", "core_files"),
            ("/var/www/html/wp-config.php", "configuration"),
            (".htaccess", "configuration"),
            ("wp-content/plugins/wp-admin-tools/main.php", "other"),
        ],
    )
    def test_file_risk(self, path, kind):
        assert SafetyAssessor.file_risk(path)[1] == kind

    def test_configuration_file_never_safe(self):
        assessment = SafetyAssessor(threshold=1.0).assess(_make_record(file="wp-config.php"))
        assert assessment.safe_to_auto_fix is False
        assert "site configuration file affected" in assessment.factors

    def test_low_confidence_factor(self):
        assessment = SafetyAssessor().assess(_make_record(confidence=0.4, severity=Severity.LOW))
        assert assessment.factors == ["low detector confidence (0.40)"]

    def test_threshold(self):
        record = _make_record(vulnerability_type="command_injection", severity=Severity.CRITICAL)
        assert SafetyAssessor(threshold=0.3).assess(record).safe_to_auto_fix is False
        assert SafetyAssessor(threshold=0.7).assess(record).safe_to_auto_fix is True


# ===========================================================================
# Guidance, strategy and backups
# ===========================================================================

class TestManualFixGuidance:

    def test_type_specific_steps(self):
        steps = ManualFixGuidance().instructions_for(_make_record())
        assert steps[0] == "Locate wp-content/plugins/greeter/greeting.php line 1: echo $_GET['name'];"
        assert steps[1 : 1 + len(TYPE_STEPS["xss"])] == TYPE_STEPS["xss"]
        assert steps[-2] == "Use esc_html() to escape HTML content before output"
        assert steps[-1] == "Re-run the scan to confirm the finding is resolved"

    def test_fallback_steps(self):
        steps = ManualFixGuidance().instructions_for(_make_record(vulnerability_type="race_conditions"))
        assert steps[1 : 1 + len(FALLBACK_STEPS)] == FALLBACK_STEPS

    def test_extra_steps_override(self):
        guidance = ManualFixGuidance(extra_steps={"xss": ["Use the theme's escaping helper"]})
        assert guidance.instructions_for(_make_record())[1] == "Use the theme's escaping helper"


class TestSuggestionFixStrategy:

    def test_info(self):
        info = SuggestionFixStrategy().info()
        assert info == {"name": "code_suggestion", "supported_types": ["sql_injection", "xss"]}

    def test_can_auto_fix(self):
        strategy = SuggestionFixStrategy()
        assert strategy.can_auto_fix(_make_record())
        assert not strategy.can_auto_fix(_make_record(code="   "))
        assert not strategy.can_auto_fix(_make_record(vulnerability_type="code_injection"))
        assert not strategy.can_auto_fix(_make_record(detector="general"))

    def test_apply_without_suggestions(self):
        applied = SuggestionFixStrategy().apply_fix(_make_record(), None)
        assert applied.success is False
        assert applied.error == "no code suggestions available"

    def test_rollback_unknown_fix(self):
        assert SuggestionFixStrategy().rollback_fix("fix-unknown", {}) is False


class TestInMemoryBackupStore:

    def test_create_and_get(self):
        store = InMemoryBackupStore()
        backup_id = store.create(_make_record())
        assert backup_id.startswith("bak-")
        assert store.get(backup_id)["code"] == "echo $_GET['name'];"
        assert len(store) == 1
        assert isinstance(store, BackupStore)

    def test_get_returns_copy(self):
        store = InMemoryBackupStore()
        backup_id = store.create(_make_record())
        store.get(backup_id)["code"] = "tampered"
        assert store.get(backup_id)["code"] == "echo $_GET['name'];"

    def test_missing(self):
        assert InMemoryBackupStore().get("bak-missing") is None


# ===========================================================================
# Engine
# ===========================================================================

class TestProcessFinding:

    def test_concatenated_query_auto_fixed(self, engine, concatenated_query_finding):
        result = engine.process_finding(concatenated_query_finding)

        assert result.status == FixStatus.AUTO_FIXED
        assert result.success is True
        assert result.strategy_used == "code_suggestion"
        assert result.fix_id.startswith("fix-")
        assert result.backup_id.startswith("bak-")
        assert result.safety_assessment.safe_to_auto_fix is True
        assert [c["type"] for c in result.changes_made] == ["input_sanitization", "numeric_sanitization"]
        assert result.changes_made[0]["replacement"] == "sanitize_text_field($_GET['id'])"
        assert result.changes_made[0]["line"] == "5"

    def test_default_strategies(self, engine):
        assert sorted(engine.strategies) == ["sql_injection", "xss"]

    def test_configuration_file_requires_manual_fix(self, engine):
        result = engine.process_finding(_make_record(file="wp-config.php"))
        assert result.status == FixStatus.MANUAL_REQUIRED
        assert result.safety_assessment is not None
        assert result.safety_assessment.safe_to_auto_fix is False
        assert result.manual_instructions[0].startswith("Locate wp-config.php line 1")
        assert result.backup_id is None

    def test_low_confidence_requires_manual_fix(self, engine):
        result = engine.process_finding(_make_record(confidence=0.6))
        assert result.status == FixStatus.MANUAL_REQUIRED
        assert result.actions_taken == ["Confidence 0.60 below auto-fix minimum 0.80"]

    def test_safety_override(self, engine):
        result = engine.process_finding(_make_record(confidence=0.6, file="wp-config.php"), safety_override=True)
        assert result.status == FixStatus.AUTO_FIXED
        assert [c["type"] for c in result.changes_made][0] == "esc_html"

    def test_manual_only(self, engine):
        result = engine.process_finding(_make_record(), manual_only=True)
        assert result.status == FixStatus.MANUAL_REQUIRED
        assert result.strategy_used == "code_suggestion"
        assert result.fix_id is None

    def test_no_strategy_for_type(self, engine):
        record = _make_record(vulnerability_type="code_injection", detector="general", code="eval($_GET['x']);")
        result = engine.process_finding(record)
        assert result.status == FixStatus.MANUAL_REQUIRED
        assert result.strategy_used is None
        assert result.manual_instructions[1] == TYPE_STEPS["code_injection"][0]

    def test_general_detector_sql_finding_requires_manual_fix(self, engine, registry):
        content = """<?php\n$wpdb->query("SELECT * FROM wp_users WHERE id=" . $_GET['id']);\n"""
        findings = GeneralPatternDetector(registry=registry, categories=["sql_injection"]).scan(
            content, "wp-content/plugins/members/lookup.php"
        )
        finding = next(f for f in findings if f.vulnerability_type == "sql_injection")
        assert finding.detector == "general"

        result = engine.process_finding(finding, safety_override=True)
        assert result.status == FixStatus.MANUAL_REQUIRED
        assert result.strategy_used == "code_suggestion"
        assert result.backup_id is None
        assert result.fix_id is None
        assert result.actions_taken == []
        assert result.manual_instructions
        assert len(engine.backup_store) == 0

    def test_missing_suggestions_fail(self, engine):
        empty = DetailedAnalysis(vulnerability_type="Cross-Site Scripting (XSS)", risk_level="High")
        result = engine.process_finding(_make_record(), empty)
        assert result.status == FixStatus.FAILED
        assert result.error_message == "fix application failed: no code suggestions available"
        assert result.backup_id is not None

    def test_strategy_exception_becomes_failed(self, engine):
        engine.register_strategy("code_injection", RecordingStrategy(raise_on_apply=True))
        result = engine.process_finding(_make_record(vulnerability_type="code_injection"))
        assert result.status == FixStatus.FAILED
        assert result.success is False
        assert result.error_message == "patcher crashed"

    def test_validation_failure_rolls_back(self, engine):
        strategy = RecordingStrategy(unchanged=True)
        engine.register_strategy("code_injection", strategy)
        result = engine.process_finding(_make_record(vulnerability_type="code_injection"))
        assert result.status == FixStatus.FAILED
        assert result.error_message == "fix validation failed: nothing changed"
        assert strategy.rolled_back == ["fix-recording"]

    def test_register_strategy_requires_type(self, engine):
        assert engine.register_strategy("", RecordingStrategy()) is False

    def test_analysis_for_unknown_detector(self, engine):
        assert engine.analysis_for(_make_record(detector="nope")) is None
        assert engine.analysis_for(_make_record(detector="")) is None

    def test_analysis_uses_rules_from_engine_settings(self, rules_dir):
        settings = Settings(_env_file=None, custom_rules_dir=str(rules_dir))
        engine = FixEngine(settings=settings)
        assert engine.registry is get_registry(settings)

        record = _make_record(
            vulnerability_type="code_injection",
            subtype="theme_option_eval",
            detector="general",
            code="eval(get_option('theme_snippet'));",
        )
        custom_key = "code_injection/code_injection/theme_option_eval"
        assert any(custom_key in v for v in engine.analysis_for(record).attack_vectors)

        default_engine = FixEngine(settings=Settings(_env_file=None))
        assert not any(custom_key in v for v in default_engine.analysis_for(record).attack_vectors)


class TestRollback:

    def test_rollback_applied_fix(self, engine):
        result = engine.process_finding(_make_record())
        assert engine.rollback_fix(result.fix_id, result.backup_id) is True
        assert engine.rollback_fix(result.fix_id, result.backup_id) is False

    def test_rollback_without_backup(self, engine):
        result = engine.process_finding(_make_record())
        assert engine.rollback_fix(result.fix_id, "bak-missing") is False

    def test_rollback_unknown_fix(self, engine):
        assert engine.rollback_fix("fix-unknown", "bak-unknown") is False


class TestBatch:

    def test_summary_counts(self, engine, concatenated_query_finding):
        engine.register_strategy("code_injection", RecordingStrategy(raise_on_apply=True))
        records = [
            concatenated_query_finding,
            _make_record(id="vuln-2", confidence=0.3),
            _make_record(id="vuln-3", vulnerability_type="code_injection"),
        ]
        summary = engine.process_findings(records)

        assert summary.total_processed == 3
        assert summary.auto_fixed == 1
        assert summary.manual_required == 1
        assert summary.failed == 1
        assert summary.errors == ["patcher crashed"]
        assert [r.vulnerability_id for r in summary.fixes][1:] == ["vuln-2", "vuln-3"]

    def test_precomputed_analyses(self, engine):
        record = _make_record()
        empty = DetailedAnalysis(vulnerability_type="Cross-Site Scripting (XSS)", risk_level="High")
        summary = engine.process_findings([record], {record.id: empty})
        assert summary.failed == 1

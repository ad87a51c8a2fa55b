# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Unit tests for the XSS detector."""

from __future__ import annotations

from pathlib import Path

import pytest

from wpbreach.core.constants import Severity
from wpbreach.detectors.xss import (
    CONTEXTS,
    DEFAULT_CONTEXT,
    DESCRIPTIONS,
    RECOMMENDATIONS,
    SEVERITIES,
    XssDetector,
    XssPatternType,
)

FIXTURES_DIR = Path(__file__).parent.parent.parent / "fixtures" / "php"


@pytest.fixture
def detector(registry):
    return XssDetector(registry=registry)


class TestEchoedRequestValue:
    """``echo $_GET[...]`` with no escaping."""

    def test_single_direct_output_finding(self, detector):
        content = (FIXTURES_DIR / "vulnerable" / "greeting.php").read_text()
        findings = detector.scan(content, "greeting.php")

        assert len(findings) == 1
        finding = findings[0]
        assert finding.subtype == XssPatternType.DIRECT_OUTPUT
        assert finding.severity == Severity.HIGH
        assert finding.confidence == 0.9
        assert finding.line == 1
        assert finding.context == "HTML content"
        assert finding.cwe_id == "CWE-79"
        assert finding.recommendation == RECOMMENDATIONS[XssPatternType.DIRECT_OUTPUT]

    def test_escaped_output_not_reported(self, detector):
        content = "<?php\necho esc_html($_GET['name']);\n"
        assert detector.scan(content, "greeting.php") == []

    def test_escaping_two_lines_away_suppresses(self, detector):
        content = "<?php\n$name = sanitize_text_field($x);\n\necho $_GET['name'];\n"
        assert detector.detect(content, "g.php")
        assert detector.scan(content, "g.php") == []

    def test_escaping_three_lines_away_does_not_suppress(self, detector):
        content = "<?php\n$name = esc_html($x);\n\n\necho $_GET['name'];\n"
        assert len(detector.scan(content, "g.php")) == 1


class TestPatternTypes:

    def test_script_context_is_critical_and_boosted(self, detector):
        code = "<script>document.write($_GET['u']);</script>"
        findings = detector.detect(code, "inline.php")
        script = [f for f in findings if f.subtype == XssPatternType.JAVASCRIPT_INJECTION]
        assert script
        assert script[0].severity == Severity.CRITICAL
        assert script[0].confidence == 1.0

    def test_href_attribute(self, detector):
        code = """<a href="<?php echo $_GET['next']; ?>">Continue</a>"""
        findings = detector.detect(code, "link.php")
        subtypes = {f.subtype for f in findings}
        assert XssPatternType.ATTRIBUTE_INJECTION in subtypes

    def test_input_value_form_injection(self, detector):
        code = """<input type="text" name="bio" value="<?php echo $_POST['bio']; ?>">"""
        findings = detector.detect(code, "form.php")
        assert any(f.subtype == XssPatternType.FORM_INJECTION for f in findings)

    def test_meta_content_injection(self, detector):
        code = """<meta name="description" content="<?php echo $_GET['t']; ?>">"""
        findings = detector.detect(code, "head.php")
        meta = [f for f in findings if f.subtype == XssPatternType.META_INJECTION]
        assert meta
        assert meta[0].context == "Meta tags"

    def test_no_request_data_no_findings(self, detector):
        assert detector.detect("<?php echo $title; ?>", "t.php") == []


class TestLookupTables:

    @pytest.mark.parametrize("table", [SEVERITIES, DESCRIPTIONS, RECOMMENDATIONS, CONTEXTS])
    def test_tables_cover_every_pattern_type(self, table):
        assert set(table) == set(XssPatternType)

    def test_unknown_pattern_type_defaults(self, detector):
        assert detector.severity_for("svg_injection") == Severity.MEDIUM
        assert detector.context_for("svg_injection") == DEFAULT_CONTEXT
        assert detector.confidence_for("svg_injection", "") == 0.5

    def test_event_handler_boost(self, detector):
        assert detector.confidence_for(XssPatternType.ATTRIBUTE_INJECTION, "onclick=") == pytest.approx(0.85)


class TestAnalysis:

    def test_reflected_echo(self, detector):
        analysis = detector.analyze("echo $_GET['name'];", "greeting.php")
        assert analysis.xss_type == "Reflected XSS"
        assert analysis.risk_level == "High"
        assert analysis.context.output_context == "html"
        assert analysis.context.dangerous_functions == ["direct_output"]
        assert analysis.context.input_sources == ["GET parameter"]
        assert analysis.code_suggestions[0].type == "esc_html"
        assert analysis.code_suggestions[0].secure == "echo esc_html($_GET['name'])"
        assert analysis.code_suggestions[-1].type == "wp_kses"

    def test_script_context_is_stored_and_critical(self, detector):
        analysis = detector.analyze("<script>document.write($_COOKIE['x'])</script>", "x.php")
        assert analysis.xss_type == "Stored/Persistent XSS"
        assert analysis.risk_level == "Critical"
        assert analysis.context.output_context == "javascript"
        assert "document_write" in analysis.context.dangerous_functions
        assert "JavaScript injection possible" in analysis.attack_vectors

    def test_dom_based_when_no_output_call(self, detector):
        analysis = detector.analyze("$name = $_GET['name'];", "x.php")
        assert analysis.xss_type == "DOM-based XSS"

    def test_url_context(self, detector):
        assert detector.output_context('<img src="<?= $u ?>">').output_context == "url"

    def test_safe_practices(self, detector):
        content = (FIXTURES_DIR / "safe" / "member_lookup_safe.php").read_text()
        practices = detector.check_safe_practices(content)
        assert [(p.function, p.occurrences) for p in practices] == [("esc_html", 1)]

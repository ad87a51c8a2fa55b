# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Cross-site scripting detector for unescaped output of request data."""

from __future__ import annotations

from enum import StrEnum

import regex

from wpbreach.core.constants import DetectorName, Severity
from wpbreach.detectors.base import CategoryDetector, detector, table_lookup
from wpbreach.detectors.false_positive import XSS_ESCAPING_FUNCTIONS, FalsePositiveFilter
from wpbreach.models.analysis import (
    CodeSuggestion,
    DetailedAnalysis,
    OutputContext,
    SafePracticeObservation,
)
from wpbreach.models.finding import Finding
from wpbreach.patterns.matching import iter_matches

_INPUT = r"\$_(?:GET|POST|REQUEST|COOKIE)"


class XssPatternType(StrEnum):
    DIRECT_OUTPUT = "direct_output"
    ATTRIBUTE_INJECTION = "attribute_injection"
    JAVASCRIPT_INJECTION = "javascript_injection"
    URL_INJECTION = "url_injection"
    FORM_INJECTION = "form_injection"
    META_INJECTION = "meta_injection"


def _compile(*sources: str) -> list[regex.Pattern]:
    return [regex.compile(source, regex.IGNORECASE) for source in sources]


PATTERNS: dict[XssPatternType, list[regex.Pattern]] = {
    XssPatternType.DIRECT_OUTPUT: _compile(
        r"echo\s+" + _INPUT + r"\s*\[",
        r"print\s+" + _INPUT + r"\s*\[",
        r"print_r\s*\(\s*" + _INPUT + r"\s*\[",
        r"<\?=\s*" + _INPUT + r"\s*\[",
    ),
    XssPatternType.ATTRIBUTE_INJECTION: _compile(
        r"""(?:id|class|style|onclick|onload|onerror)\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"""href\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"""src\s*=\s*['"]?[^'">]*""" + _INPUT,
    ),
    XssPatternType.JAVASCRIPT_INJECTION: _compile(
        r"<script[^>]*>[^<]*" + _INPUT,
        r"""var\s+[a-zA-Z_][a-zA-Z0-9_]*\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"document\.(?:write|writeln)\s*\([^)]*" + _INPUT,
    ),
    XssPatternType.URL_INJECTION: _compile(
        r"""href\s*=\s*['"]?""" + _INPUT,
        r"""window\.location\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"""location\.href\s*=\s*['"]?[^'">]*""" + _INPUT,
    ),
    XssPatternType.FORM_INJECTION: _compile(
        r"""value\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"""<input[^>]*value\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"<textarea[^>]*>[^<]*" + _INPUT,
    ),
    XssPatternType.META_INJECTION: _compile(
        r"""<meta[^>]*content\s*=\s*['"]?[^'">]*""" + _INPUT,
        r"<title[^>]*>[^<]*" + _INPUT,
    ),
}

SEVERITIES: dict[XssPatternType, Severity] = {
    XssPatternType.DIRECT_OUTPUT: Severity.HIGH,
    XssPatternType.ATTRIBUTE_INJECTION: Severity.HIGH,
    XssPatternType.JAVASCRIPT_INJECTION: Severity.CRITICAL,
    XssPatternType.URL_INJECTION: Severity.MEDIUM,
    XssPatternType.FORM_INJECTION: Severity.MEDIUM,
    XssPatternType.META_INJECTION: Severity.MEDIUM,
}

DESCRIPTIONS: dict[XssPatternType, str] = {
    XssPatternType.DIRECT_OUTPUT: "User input directly output to HTML without escaping",
    XssPatternType.ATTRIBUTE_INJECTION: "User input used in HTML attributes without proper escaping",
    XssPatternType.JAVASCRIPT_INJECTION: "User input injected into JavaScript context",
    XssPatternType.URL_INJECTION: "User input used in URL/href attributes without validation",
    XssPatternType.FORM_INJECTION: "User input used in form field values without escaping",
    XssPatternType.META_INJECTION: "User input used in meta tags without escaping",
}

RECOMMENDATIONS: dict[XssPatternType, str] = {
    XssPatternType.DIRECT_OUTPUT: "Use esc_html() to escape HTML content before output",
    XssPatternType.ATTRIBUTE_INJECTION: "Use esc_attr() to escape HTML attribute values",
    XssPatternType.JAVASCRIPT_INJECTION: "Use esc_js() to escape JavaScript content and avoid inline scripts",
    XssPatternType.URL_INJECTION: "Use esc_url() to validate and escape URL values",
    XssPatternType.FORM_INJECTION: "Use esc_attr() for form field values and validate input",
    XssPatternType.META_INJECTION: "Use esc_attr() for meta tag content and validate input",
}

BASE_CONFIDENCE: dict[XssPatternType, float] = {
    XssPatternType.DIRECT_OUTPUT: 0.9,
    XssPatternType.ATTRIBUTE_INJECTION: 0.8,
    XssPatternType.JAVASCRIPT_INJECTION: 0.95,
    XssPatternType.URL_INJECTION: 0.7,
    XssPatternType.FORM_INJECTION: 0.7,
    XssPatternType.META_INJECTION: 0.6,
}

CONTEXTS: dict[XssPatternType, str] = {
    XssPatternType.DIRECT_OUTPUT: "HTML content",
    XssPatternType.ATTRIBUTE_INJECTION: "HTML attributes",
    XssPatternType.JAVASCRIPT_INJECTION: "JavaScript code",
    XssPatternType.URL_INJECTION: "URL/href values",
    XssPatternType.FORM_INJECTION: "Form fields",
    XssPatternType.META_INJECTION: "Meta tags",
}

DEFAULT_SEVERITY = Severity.MEDIUM
DEFAULT_DESCRIPTION = "Potential XSS vulnerability"
DEFAULT_RECOMMENDATION = "Escape output using appropriate WordPress functions"
DEFAULT_CONFIDENCE = 0.5
DEFAULT_CONTEXT = "Unknown context"

MITIGATION_STEPS: list[str] = [
    "Escape all output using appropriate WordPress functions",
    "Validate and sanitize all user input",
    "Use Content Security Policy (CSP) headers",
    "Implement proper input validation",
    "Use context-aware output encoding",
]

INPUT_SOURCES: dict[str, str] = {
    "$_GET": "GET parameter",
    "$_POST": "POST parameter",
    "$_COOKIE": "Cookie value",
    "$_REQUEST": "Request parameter",
}

_STORED_MARKERS = regex.compile(r"<script|javascript:|on\w+\s*=", regex.IGNORECASE)
_REFLECTED_MARKERS = regex.compile(r"echo|print|\?=")
_SCRIPT_CONTEXT = regex.compile(r"<script|javascript:")
_URL_CONTEXT = regex.compile(r"(?:href|src)\s*=")
_ATTRIBUTE_CONTEXT = regex.compile(r"(?:id|class|style)\s*=")
_EVENT_HANDLERS = regex.compile(r"(?:onclick|onload|onerror)")

_ECHO_INPUT = regex.compile(r"echo\s+" + _INPUT + r"\s*\[([^\]]+)\]", regex.IGNORECASE)
_ATTRIBUTE_INPUT = regex.compile(
    r"""(?:id|class|style)\s*=\s*['"]?[^'">]*""" + _INPUT + r"\s*\[([^\]]+)\]", regex.IGNORECASE
)
_URL_INPUT = regex.compile(r"""(?:href|src)\s*=\s*['"]?[^'">]*""" + _INPUT + r"\s*\[([^\]]+)\]", regex.IGNORECASE)
_SCRIPT_INPUT = regex.compile(r"<script[^>]*>[^<]*" + _INPUT + r"\s*\[([^\]]+)\]", regex.IGNORECASE)


@detector
class XssDetector(CategoryDetector):
    """Detects request data echoed into HTML, attributes, scripts and URLs."""

    name = DetectorName.XSS.value

    _fp_filter = FalsePositiveFilter.for_xss()

    def severity_for(self, pattern_type: str) -> Severity:
        return table_lookup(SEVERITIES, XssPatternType, pattern_type, DEFAULT_SEVERITY)

    def description_for(self, pattern_type: str) -> str:
        return table_lookup(DESCRIPTIONS, XssPatternType, pattern_type, DEFAULT_DESCRIPTION)

    def recommendation_for(self, pattern_type: str) -> str:
        return table_lookup(RECOMMENDATIONS, XssPatternType, pattern_type, DEFAULT_RECOMMENDATION)

    def context_for(self, pattern_type: str) -> str:
        return table_lookup(CONTEXTS, XssPatternType, pattern_type, DEFAULT_CONTEXT)

    def confidence_for(self, pattern_type: str, matched: str) -> float:
        confidence = table_lookup(BASE_CONFIDENCE, XssPatternType, pattern_type, DEFAULT_CONFIDENCE)

        # Script context takes the primary increment, event handlers the secondary
        if "script" in matched:
            confidence += self.boosts.user_input
        if "onclick" in matched or "onload" in matched:
            confidence += self.boosts.keyword

        return round(min(1.0, confidence), 4)

    def detect(self, content: str, file_path: str, *, deadline: float | None = None) -> list[Finding]:
        findings: list[Finding] = []
        for pattern_type, patterns in PATTERNS.items():
            for pattern in patterns:
                for match in iter_matches(pattern, content, file_path=file_path, deadline=deadline):
                    findings.append(
                        Finding(
                            vulnerability_type=self.name,
                            subtype=pattern_type.value,
                            severity=self.severity_for(pattern_type),
                            confidence=self.confidence_for(pattern_type, match.text),
                            line=match.line,
                            column=match.column,
                            code=match.text.strip(),
                            file=file_path,
                            description=self.description_for(pattern_type),
                            recommendation=self.recommendation_for(pattern_type),
                            detector=self.name,
                            rule_id=f"{self.name}/{pattern_type}",
                            cwe_id="CWE-79",
                            context=self.context_for(pattern_type),
                        )
                    )
        return findings

    def analyze(self, code: str, file_path: str) -> DetailedAnalysis:
        risk_level = "High"
        if _STORED_MARKERS.search(code):
            xss_type = "Stored/Persistent XSS"
            risk_level = "Critical"
        elif _REFLECTED_MARKERS.search(code):
            xss_type = "Reflected XSS"
        else:
            xss_type = "DOM-based XSS"

        vectors: list[str] = []
        if regex.search(_INPUT, code):
            vectors.append("User input directly output to HTML")
        if _SCRIPT_CONTEXT.search(code):
            vectors.append("JavaScript injection possible")
        if _URL_CONTEXT.search(code):
            vectors.append("URL/Link manipulation possible")
        if _EVENT_HANDLERS.search(code):
            vectors.append("Event handler injection possible")

        return DetailedAnalysis(
            vulnerability_type="Cross-Site Scripting (XSS)",
            risk_level=risk_level,
            exploitable=True,
            impact={
                "session_hijacking": True,
                "cookie_theft": True,
                "phishing": True,
                "malware_distribution": True,
                "privilege_escalation": True,
            },
            attack_vectors=vectors,
            mitigation_steps=list(MITIGATION_STEPS),
            code_suggestions=self._code_suggestions(code),
            xss_type=xss_type,
            context=self.output_context(code),
            file=file_path,
        )

    @staticmethod
    def output_context(code: str) -> OutputContext:
        if _SCRIPT_CONTEXT.search(code):
            output = "javascript"
        elif _URL_CONTEXT.search(code):
            output = "url"
        elif _ATTRIBUTE_CONTEXT.search(code):
            output = "attribute"
        elif "<style" in code:
            output = "css"
        else:
            output = "html"

        dangerous: list[str] = []
        if regex.search(r"echo|print", code):
            dangerous.append("direct_output")
        if "document.write" in code:
            dangerous.append("document_write")

        return OutputContext(
            output_context=output,
            dangerous_functions=dangerous,
            input_sources=[label for marker, label in INPUT_SOURCES.items() if marker in code],
        )

    @staticmethod
    def _code_suggestions(code: str) -> list[CodeSuggestion]:
        suggestions: list[CodeSuggestion] = []

        if m := _ECHO_INPUT.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="esc_html",
                    description="Use esc_html() for safe HTML output",
                    original=m.group(0),
                    secure=f"echo esc_html($_GET[{m.group(1)}])",
                )
            )
        if m := _ATTRIBUTE_INPUT.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="esc_attr",
                    description="Use esc_attr() for HTML attribute values",
                    original=m.group(0),
                    secure=f"esc_attr($_GET[{m.group(1)}])",
                )
            )
        if m := _URL_INPUT.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="esc_url",
                    description="Use esc_url() for URL values",
                    original=m.group(0),
                    secure=f"esc_url($_GET[{m.group(1)}])",
                )
            )
        if m := _SCRIPT_INPUT.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="esc_js",
                    description="Use esc_js() for JavaScript context",
                    original=m.group(0),
                    secure=f"esc_js($_GET[{m.group(1)}])",
                )
            )

        suggestions.append(
            CodeSuggestion(
                type="wp_kses",
                description="Use wp_kses() for filtered HTML output",
                secure='wp_kses($user_input, array("a" => array("href" => array()), "strong" => array()))',
            )
        )
        return suggestions

    def check_safe_practices(self, content: str) -> list[SafePracticeObservation]:
        practices: list[SafePracticeObservation] = []
        for function in XSS_ESCAPING_FUNCTIONS:
            count = self.count_calls(function, content)
            if count:
                practices.append(
                    SafePracticeObservation(
                        practice="safe_output",
                        function=function,
                        description=f"Uses {function}() for safe output",
                        occurrences=count,
                    )
                )
        return practices

    def false_positive_filter(self, finding: Finding) -> FalsePositiveFilter:
        return self._fp_filter

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""SQL injection detector for WordPress database access."""

from __future__ import annotations

from enum import StrEnum

import regex

from wpbreach.core.constants import DetectorName, Severity
from wpbreach.detectors.base import CategoryDetector, detector, table_lookup
from wpbreach.detectors.false_positive import FalsePositiveFilter
from wpbreach.models.analysis import CodeSuggestion, DetailedAnalysis, SafePracticeObservation
from wpbreach.models.finding import Finding
from wpbreach.patterns.matching import iter_matches

_INPUT = r"\$_(?:GET|POST|REQUEST|COOKIE)"


class SqlPatternType(StrEnum):
    DIRECT_INPUT = "direct_input"
    WPDB_UNSAFE = "wpdb_unsafe"
    DYNAMIC_SQL = "dynamic_sql"
    LIKE_INJECTION = "like_injection"
    ORDER_BY_INJECTION = "order_by_injection"


PATTERNS: dict[SqlPatternType, list[regex.Pattern]] = {
    SqlPatternType.DIRECT_INPUT: [
        regex.compile(
            _INPUT + r"""\s*\[\s*['"][^'"]*['"]\s*\]\s*(?:(?:\.|\+|,)\s*)?(?:(?:'|")?\s*\)\s*)?"""
            r"(?:;|\s+(?:FROM|WHERE|ORDER|GROUP|HAVING|UNION|SELECT|UPDATE|DELETE|INSERT))",
            regex.IGNORECASE,
        ),
        regex.compile(
            r"""(?:mysql_query|mysqli_query)\s*\(\s*['"](?>[^'"]*?(SELECT|UPDATE|DELETE|INSERT))[^'"]*+['"]\s*\.\s*"""
            + _INPUT,
            regex.IGNORECASE,
        ),
    ],
    SqlPatternType.WPDB_UNSAFE: [
        regex.compile(
            r"""\$wpdb->(?:get_var|get_row|get_col|get_results|query)\s*\(\s*['"](?>[^'"]*?"""
            r"""(SELECT|UPDATE|DELETE|INSERT))[^'"]*+['"]\s*\.\s*""" + _INPUT,
            regex.IGNORECASE,
        ),
        regex.compile(
            r"""\$wpdb->prepare\s*\(\s*['"](?>[^'"]*?(SELECT|UPDATE|DELETE|INSERT))[^'"]*+['"]\s*\.\s*""" + _INPUT,
            regex.IGNORECASE,
        ),
    ],
    SqlPatternType.DYNAMIC_SQL: [
        regex.compile(
            r"""(?:SELECT|UPDATE|DELETE|INSERT)(?>[^'"]*?(WHERE|SET|VALUES))[^'"]*+"""
            r"""(['"]\s*\.\s*""" + _INPUT + r"""|['"]\s*\.\s*\$[a-zA-Z_][a-zA-Z0-9_]*\s*\.\s*['"]\s*\.\s*"""
            + _INPUT + r")",
            regex.IGNORECASE,
        ),
        regex.compile(
            r"""\$(?:where|query|sql)\s*\.?=\s*['"](?>[^'"]*?(WHERE|SET|VALUES))[^'"]*+['"]\s*\.\s*""" + _INPUT,
            regex.IGNORECASE,
        ),
    ],
    SqlPatternType.LIKE_INJECTION: [
        regex.compile(
            r"""LIKE\s*['"][^'"]*(['"]\s*\.\s*""" + _INPUT + r"""|%['"]\s*\.\s*""" + _INPUT + r")",
            regex.IGNORECASE,
        ),
    ],
    SqlPatternType.ORDER_BY_INJECTION: [
        regex.compile(r"""ORDER\s+BY\s*['"]\s*\.\s*""" + _INPUT, regex.IGNORECASE),
        regex.compile(r"ORDER\s+BY\s*" + _INPUT, regex.IGNORECASE),
    ],
}

SEVERITIES: dict[SqlPatternType, Severity] = {
    SqlPatternType.DIRECT_INPUT: Severity.CRITICAL,
    SqlPatternType.WPDB_UNSAFE: Severity.HIGH,
    SqlPatternType.DYNAMIC_SQL: Severity.HIGH,
    SqlPatternType.LIKE_INJECTION: Severity.MEDIUM,
    SqlPatternType.ORDER_BY_INJECTION: Severity.MEDIUM,
}

DESCRIPTIONS: dict[SqlPatternType, str] = {
    SqlPatternType.DIRECT_INPUT: "Direct user input concatenated to SQL query without sanitization",
    SqlPatternType.WPDB_UNSAFE: "WordPress database function used with unsanitized user input",
    SqlPatternType.DYNAMIC_SQL: "Dynamic SQL construction with potential user input injection",
    SqlPatternType.LIKE_INJECTION: "LIKE query vulnerable to wildcard injection",
    SqlPatternType.ORDER_BY_INJECTION: "ORDER BY clause vulnerable to injection attacks",
}

RECOMMENDATIONS: dict[SqlPatternType, str] = {
    SqlPatternType.DIRECT_INPUT: "Use $wpdb->prepare() with placeholders and sanitize all user input",
    SqlPatternType.WPDB_UNSAFE: "Use $wpdb->prepare() for parameterized queries instead of concatenation",
    SqlPatternType.DYNAMIC_SQL: "Use prepared statements and validate/sanitize all dynamic content",
    SqlPatternType.LIKE_INJECTION: "Escape LIKE wildcards and use $wpdb->prepare() for LIKE queries",
    SqlPatternType.ORDER_BY_INJECTION: "Use whitelist validation for ORDER BY columns",
}

BASE_CONFIDENCE: dict[SqlPatternType, float] = {
    SqlPatternType.DIRECT_INPUT: 0.9,
    SqlPatternType.WPDB_UNSAFE: 0.8,
    SqlPatternType.DYNAMIC_SQL: 0.7,
    SqlPatternType.LIKE_INJECTION: 0.6,
    SqlPatternType.ORDER_BY_INJECTION: 0.6,
}

DEFAULT_SEVERITY = Severity.MEDIUM
DEFAULT_DESCRIPTION = "Potential SQL injection vulnerability"
DEFAULT_RECOMMENDATION = "Implement proper input validation and use prepared statements"
DEFAULT_CONFIDENCE = 0.5

SANITIZATION_FUNCTIONS: tuple[str, ...] = (
    "sanitize_text_field",
    "sanitize_email",
    "sanitize_url",
    "esc_sql",
    "absint",
    "intval",
    "floatval",
)

MITIGATION_STEPS: list[str] = [
    "Use WordPress prepared statements with $wpdb->prepare()",
    "Sanitize all user input with appropriate functions",
    "Validate input data types and ranges",
    "Use whitelist validation for dynamic content",
    "Implement proper error handling to avoid information disclosure",
]

_PREPARE_CALL = regex.compile(r"\$wpdb->prepare\s*\(", regex.IGNORECASE)
_CONCAT_QUERY = regex.compile(
    r"""\$wpdb->(?:get_var|get_row|get_col|get_results|query)\s*\(\s*['"]([^'"]*)['"]\s*\.\s*"""
    + _INPUT
    + r"\s*\[([^\]]+)\]",
    regex.IGNORECASE,
)
_INPUT_INDEX = regex.compile(_INPUT + r"\s*\[([^\]]+)\]")


@detector
class SqlInjectionDetector(CategoryDetector):
    """Detects string-built SQL reaching ``$wpdb`` and the raw MySQL APIs."""

    name = DetectorName.SQL_INJECTION.value

    _fp_filter = FalsePositiveFilter.for_sql()

    def severity_for(self, pattern_type: str) -> Severity:
        return table_lookup(SEVERITIES, SqlPatternType, pattern_type, DEFAULT_SEVERITY)

    def description_for(self, pattern_type: str) -> str:
        return table_lookup(DESCRIPTIONS, SqlPatternType, pattern_type, DEFAULT_DESCRIPTION)

    def recommendation_for(self, pattern_type: str) -> str:
        return table_lookup(RECOMMENDATIONS, SqlPatternType, pattern_type, DEFAULT_RECOMMENDATION)

    def confidence_for(self, pattern_type: str, matched: str) -> float:
        confidence = table_lookup(BASE_CONFIDENCE, SqlPatternType, pattern_type, DEFAULT_CONFIDENCE)

        if "$_GET" in matched or "$_POST" in matched:
            confidence += self.boosts.user_input
        if "WHERE" in matched:
            confidence += self.boosts.keyword
        if "SELECT" in matched:
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
                            cwe_id="CWE-89",
                        )
                    )
        return findings

    def analyze(self, code: str, file_path: str) -> DetailedAnalysis:
        vectors: list[str] = []
        if regex.search(_INPUT, code):
            vectors.append("User input directly concatenated to SQL query")
        if regex.search(r"(?:SELECT|UPDATE|DELETE|INSERT)", code):
            vectors.append("SQL statement construction with user data")
        if "WHERE" in code:
            vectors.append("WHERE clause manipulation possible")
        if "UNION" in code:
            vectors.append("UNION-based SQL injection possible")

        return DetailedAnalysis(
            vulnerability_type="SQL Injection",
            risk_level="Critical",
            exploitable=True,
            impact={
                "data_theft": True,
                "data_modification": True,
                "privilege_escalation": True,
                "system_compromise": True,
            },
            attack_vectors=vectors,
            mitigation_steps=list(MITIGATION_STEPS),
            code_suggestions=self._code_suggestions(code),
            file=file_path,
        )

    @staticmethod
    def _code_suggestions(code: str) -> list[CodeSuggestion]:
        suggestions: list[CodeSuggestion] = []

        if m := _CONCAT_QUERY.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="wpdb_prepare",
                    description="Use $wpdb->prepare() for parameterized queries",
                    original=m.group(0),
                    secure=f'$wpdb->get_var($wpdb->prepare("{m.group(1)} %s", '
                    f"sanitize_text_field($_GET[{m.group(2)}])))",
                )
            )

        if m := _INPUT_INDEX.search(code):
            suggestions.append(
                CodeSuggestion(
                    type="input_sanitization",
                    description="Sanitize user input before using in queries",
                    original=m.group(0),
                    secure=f"sanitize_text_field({m.group(0)})",
                )
            )
            suggestions.append(
                CodeSuggestion(
                    type="numeric_sanitization",
                    description="Use absint() for positive integers",
                    secure='absint($_GET["id"])',
                )
            )

        return suggestions

    def check_safe_practices(self, content: str) -> list[SafePracticeObservation]:
        practices: list[SafePracticeObservation] = []

        prepared = len(_PREPARE_CALL.findall(content))
        if prepared:
            practices.append(
                SafePracticeObservation(
                    practice="wpdb_prepare",
                    function="$wpdb->prepare",
                    description="Uses $wpdb->prepare() for parameterized queries",
                    occurrences=prepared,
                )
            )

        for function in SANITIZATION_FUNCTIONS:
            count = self.count_calls(function, content)
            if count:
                practices.append(
                    SafePracticeObservation(
                        practice="input_sanitization",
                        function=function,
                        description=f"Uses {function}() for input sanitization",
                        occurrences=count,
                    )
                )
        return practices

    def false_positive_filter(self, finding: Finding) -> FalsePositiveFilter:
        return self._fp_filter

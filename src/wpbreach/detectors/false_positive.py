# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Context heuristics that discard likely false-positive findings.

Three local checks run in order and the first hit wins:

1. the finding's line is a comment;
2. a sanitizing or escaping call appears within ``window`` lines;
3. the matched snippet is a single quoted string literal.

Block comments are only recognised when ``/*`` and ``*/`` sit on the
same line. A match inside a multi-line block comment is reported.
"""

from __future__ import annotations

from collections.abc import Iterable

import regex

from wpbreach.models.finding import Finding

COMMENT_PREFIXES: tuple[str, ...] = ("//", "#")

SQL_SANITIZER_REGEX = regex.compile(r"(?:sanitize_|esc_|absint|intval|floatval|wp_kses)")
SQL_SANITIZER_LITERALS: tuple[str, ...] = ("$wpdb->prepare",)

XSS_ESCAPING_FUNCTIONS: tuple[str, ...] = (
    "esc_html",
    "esc_attr",
    "esc_url",
    "esc_js",
    "esc_textarea",
    "wp_kses",
    "wp_kses_post",
    "sanitize_text_field",
    "sanitize_html_class",
    "sanitize_title",
    "wp_strip_all_tags",
)

GENERAL_SANITIZER_REGEX = regex.compile(
    r"(?:sanitize_|esc_|absint|intval|floatval|wp_kses|wp_verify_nonce|check_admin_referer"
    r"|current_user_can|basename|realpath|wp_check_filetype|wp_validate_redirect|wp_safe_redirect)"
)

CSRF_PROTECTION_REGEX = regex.compile(r"(?:wp_verify_nonce|check_admin_referer|check_ajax_referer|wp_nonce_field)")

FILE_INCLUSION_SANITIZER_REGEX = regex.compile(
    r"(?:basename|realpath|sanitize_file_name|validate_file|wp_normalize_path|in_array)\s*\("
)

AUTHORIZATION_CHECK_REGEX = regex.compile(
    r"(?:current_user_can|is_user_logged_in|user_can|check_admin_referer|check_ajax_referer|hash_equals)\s*\("
)


class FalsePositiveFilter:
    """Configurable comment / sanitization / string-literal filter."""

    def __init__(
        self,
        *,
        window: int,
        sanitizer_regex: regex.Pattern | None = None,
        sanitizer_literals: Iterable[str] = (),
    ) -> None:
        if window < 0:
            raise ValueError("window must be >= 0")
        self.window = window
        self.sanitizer_regex = sanitizer_regex
        self.sanitizer_literals = tuple(sanitizer_literals)

    @classmethod
    def for_sql(cls) -> FalsePositiveFilter:
        return cls(window=3, sanitizer_regex=SQL_SANITIZER_REGEX, sanitizer_literals=SQL_SANITIZER_LITERALS)

    @classmethod
    def for_xss(cls) -> FalsePositiveFilter:
        return cls(window=2, sanitizer_literals=XSS_ESCAPING_FUNCTIONS)

    @classmethod
    def for_general(cls) -> FalsePositiveFilter:
        return cls(window=2, sanitizer_regex=GENERAL_SANITIZER_REGEX)

    @classmethod
    def for_csrf(cls) -> FalsePositiveFilter:
        # Handlers usually verify the nonce a few lines below the hook
        return cls(window=5, sanitizer_regex=CSRF_PROTECTION_REGEX)

    @classmethod
    def for_file_inclusion(cls) -> FalsePositiveFilter:
        return cls(window=3, sanitizer_regex=FILE_INCLUSION_SANITIZER_REGEX)

    @classmethod
    def for_auth_bypass(cls) -> FalsePositiveFilter:
        return cls(window=3, sanitizer_regex=AUTHORIZATION_CHECK_REGEX)

    # ------------------------------------------------------------------

    @staticmethod
    def is_in_comment(content: str, line_number: int) -> bool:
        lines = content.split("\n")
        if not 1 <= line_number <= len(lines):
            return False

        line = lines[line_number - 1].strip()
        if line.startswith(COMMENT_PREFIXES):
            return True
        return "/*" in line and "*/" in line

    def has_nearby_sanitization(self, content: str, line_number: int) -> bool:
        lines = content.split("\n")
        start = max(0, line_number - self.window - 1)
        end = min(len(lines) - 1, line_number + self.window - 1)

        for line in lines[start : end + 1]:
            if self.sanitizer_regex is not None and self.sanitizer_regex.search(line):
                return True
            if any(literal in line for literal in self.sanitizer_literals):
                return True
        return False

    @staticmethod
    def is_string_literal(code: str) -> bool:
        trimmed = code.strip()
        if len(trimmed) < 2:
            return False
        return any(trimmed[0] == q and trimmed[-1] == q for q in ('"', "'"))

    # ------------------------------------------------------------------

    def reasons(self, finding: Finding, content: str) -> list[str]:
        """Every heuristic that flags *finding*, for explaining suppressions."""
        found: list[str] = []
        if self.is_in_comment(content, finding.line):
            found.append("in_comment")
        if self.has_nearby_sanitization(content, finding.line):
            found.append("nearby_sanitization")
        if self.is_string_literal(finding.code):
            found.append("string_literal")
        return found

    def check(self, finding: Finding, content: str) -> bool:
        return (
            self.is_in_comment(content, finding.line)
            or self.has_nearby_sanitization(content, finding.line)
            or self.is_string_literal(finding.code)
        )

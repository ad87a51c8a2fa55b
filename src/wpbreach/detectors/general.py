# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Registry-driven detector for the general vulnerability catalogue."""

from __future__ import annotations

import logging
from collections.abc import Iterable

import regex

from wpbreach.core.config import ConfidenceBoosts
from wpbreach.core.constants import DetectorName
from wpbreach.detectors.base import CategoryDetector, detector
from wpbreach.detectors.false_positive import FalsePositiveFilter
from wpbreach.models.analysis import DetailedAnalysis, SafePracticeObservation
from wpbreach.models.finding import Finding
from wpbreach.models.rule import PatternRule
from wpbreach.patterns.matching import iter_matches
from wpbreach.patterns.registry import SQL_INJECTION_CATEGORY, XSS_CATEGORY, PatternRegistry

logger = logging.getLogger("wpbreach.detectors.general")

DEFAULT_RECOMMENDATION = "Validate and sanitize all user input and review the flagged code"

CATEGORY_RECOMMENDATIONS: dict[str, str] = {
    "code_injection": (
        "Remove dynamic code evaluation; never pass request data to eval(), assert() or create_function()"
    ),
    "command_injection": (
        "Avoid shell execution; if unavoidable, whitelist arguments and wrap them with escapeshellarg()"
    ),
    "file_upload": "Validate uploads with wp_check_filetype_and_ext() and restrict allowed MIME types",
    "path_traversal": "Normalise paths with realpath()/basename() and confine them to an allowed directory",
    "deserialization": "Use json_decode() for untrusted data instead of unserialize()",
    "information_disclosure": "Disable debug output and error display in production",
    "weak_cryptography": "Use wp_hash_password() and random_bytes()/wp_generate_password() for secrets",
    "open_redirect": "Use wp_safe_redirect() or validate targets with wp_validate_redirect()",
    "xml_external_entity": "Disable external entity loading and avoid parsing untrusted XML",
    "ldap_injection": "Escape LDAP filter values with ldap_escape()",
    "session_fixation": "Regenerate the session id after authentication and never accept it from input",
    "insecure_randomness": "Generate tokens with wp_create_nonce() or random_bytes()",
    "race_conditions": "Open files atomically and handle failures instead of checking existence first",
    "server_side_request_forgery": "Whitelist outbound hosts and validate URLs with wp_http_validate_url()",
    "business_logic": "Derive prices and quantities server-side and cast numeric input with absint()",
    "wordpress_core_bypass": "Grant capabilities through roles and check them with current_user_can()",
    "csrf": "Protect state-changing requests with wp_nonce_field() and wp_verify_nonce()",
    "file_inclusion": "Include only files from a fixed allow-list and never build include paths from input",
    "auth_bypass": "Check current_user_can() in every handler and compare secrets with hash_equals()",
    XSS_CATEGORY: "Escape output for its context with esc_html(), esc_attr(), esc_url() or esc_js()",
    SQL_INJECTION_CATEGORY: "Use $wpdb->prepare() with placeholders and sanitize all user input",
}

DEFAULT_IMPACT: dict[str, bool] = {"confidentiality": True, "integrity": True}

CATEGORY_IMPACT: dict[str, dict[str, bool]] = {
    "code_injection": {"remote_code_execution": True, "system_compromise": True, "data_theft": True},
    "command_injection": {"remote_code_execution": True, "system_compromise": True, "data_theft": True},
    "file_upload": {"remote_code_execution": True, "website_defacement": True, "malware_distribution": True},
    "path_traversal": {"data_theft": True, "configuration_exposure": True},
    "deserialization": {"remote_code_execution": True, "object_injection": True, "privilege_escalation": True},
    "information_disclosure": {"configuration_exposure": True, "reconnaissance": True},
    "weak_cryptography": {"credential_compromise": True, "data_theft": True},
    "open_redirect": {"phishing": True, "credential_compromise": True},
    "xml_external_entity": {"data_theft": True, "server_side_request_forgery": True},
    "ldap_injection": {"authentication_bypass": True, "data_theft": True},
    "session_fixation": {"session_hijacking": True, "account_takeover": True},
    "insecure_randomness": {"token_prediction": True, "account_takeover": True},
    "race_conditions": {"data_corruption": True, "privilege_escalation": True},
    "server_side_request_forgery": {"internal_network_access": True, "data_theft": True},
    "business_logic": {"financial_loss": True, "data_modification": True},
    "wordpress_core_bypass": {"privilege_escalation": True, "account_takeover": True},
    "csrf": {"unauthorized_actions": True, "data_modification": True},
    "file_inclusion": {"remote_code_execution": True, "data_theft": True, "system_compromise": True},
    "auth_bypass": {"privilege_escalation": True, "account_takeover": True, "unauthorized_access": True},
    XSS_CATEGORY: {"session_hijacking": True, "account_takeover": True, "website_defacement": True},
    SQL_INJECTION_CATEGORY: {
        "data_theft": True,
        "data_modification": True,
        "privilege_escalation": True,
        "system_compromise": True,
    },
}

CRITICAL_CATEGORIES = frozenset(
    {
        "code_injection",
        "command_injection",
        "deserialization",
        "file_inclusion",
        "wordpress_core_bypass",
        SQL_INJECTION_CATEGORY,
    }
)

GENERAL_MITIGATION_STEPS: list[str] = [
    "Treat every superglobal ($_GET, $_POST, $_REQUEST, $_COOKIE) as untrusted",
    "Validate input against an allow-list before use",
    "Prefer WordPress APIs that escape or sanitize by default",
    "Check capabilities and nonces before performing privileged actions",
]

SAFE_PRACTICE_FUNCTIONS: dict[str, str] = {
    "wp_verify_nonce": "nonce_verification",
    "check_admin_referer": "nonce_verification",
    "check_ajax_referer": "nonce_verification",
    "current_user_can": "capability_check",
    "wp_safe_redirect": "safe_redirect",
    "wp_check_filetype": "upload_validation",
    "wp_hash_password": "password_hashing",
    "random_bytes": "secure_randomness",
}

_INPUT = regex.compile(r"\$_(?:GET|POST|REQUEST|COOKIE|FILES)")


@detector
class GeneralPatternDetector(CategoryDetector):
    """Runs every registry rule of the selected categories."""

    name = DetectorName.GENERAL.value

    def __init__(
        self,
        registry: PatternRegistry | None = None,
        boosts: ConfidenceBoosts | None = None,
        categories: Iterable[str] | None = None,
    ) -> None:
        super().__init__(registry=registry, boosts=boosts)
        self._categories = list(categories) if categories is not None else None
        self._general_filter = FalsePositiveFilter.for_general()
        self._category_filters: dict[str, FalsePositiveFilter] = {
            SQL_INJECTION_CATEGORY: FalsePositiveFilter.for_sql(),
            XSS_CATEGORY: FalsePositiveFilter.for_xss(),
            "csrf": FalsePositiveFilter.for_csrf(),
            "file_inclusion": FalsePositiveFilter.for_file_inclusion(),
            "auth_bypass": FalsePositiveFilter.for_auth_bypass(),
        }

    @property
    def categories(self) -> list[str]:
        if self._categories is None:
            return self.registry.categories()
        return self._categories

    def rules(self) -> list[PatternRule]:
        return [rule for category in self.categories for rule in self.registry.rules_for_category(category)]

    @staticmethod
    def subtype_for(rule: PatternRule) -> str:
        # Flat categories report the rule id, nested ones the subcategory
        return rule.id if rule.subcategory == rule.category else rule.subcategory

    def detect(self, content: str, file_path: str, *, deadline: float | None = None) -> list[Finding]:
        findings: list[Finding] = []
        for rule in self.rules():
            for match in iter_matches(rule.regex, content, file_path=file_path, deadline=deadline):
                findings.append(
                    Finding(
                        vulnerability_type=rule.category,
                        subtype=self.subtype_for(rule),
                        severity=rule.severity,
                        confidence=rule.confidence,
                        line=match.line,
                        column=match.column,
                        code=match.text.strip(),
                        file=file_path,
                        description=rule.description,
                        recommendation=rule.recommendation
                        or CATEGORY_RECOMMENDATIONS.get(rule.category, DEFAULT_RECOMMENDATION),
                        detector=self.name,
                        rule_id=rule.key,
                        cwe_id=rule.cwe_id,
                        references=rule.references,
                    )
                )
        return findings

    def analyze(self, code: str, file_path: str) -> DetailedAnalysis:
        matched = [rule for rule in self.rules() if rule.regex.search(code)]
        categories = list(dict.fromkeys(rule.category for rule in matched))

        impact: dict[str, bool] = {}
        for category in categories:
            impact.update(CATEGORY_IMPACT.get(category, DEFAULT_IMPACT))

        vectors = [f"{rule.description} ({rule.key})" for rule in matched]
        if _INPUT.search(code):
            vectors.append("Request data reaches the flagged call")

        steps = [
            CATEGORY_RECOMMENDATIONS.get(category, DEFAULT_RECOMMENDATION) for category in categories
        ] + GENERAL_MITIGATION_STEPS

        if any(category in CRITICAL_CATEGORIES for category in categories):
            risk_level = "Critical"
        elif matched:
            risk_level = "High"
        else:
            risk_level = "Low"

        return DetailedAnalysis(
            vulnerability_type=", ".join(categories) if categories else "Unclassified",
            risk_level=risk_level,
            exploitable=bool(matched),
            impact=impact or dict(DEFAULT_IMPACT),
            attack_vectors=vectors,
            mitigation_steps=steps,
            file=file_path,
        )

    def check_safe_practices(self, content: str) -> list[SafePracticeObservation]:
        practices: list[SafePracticeObservation] = []
        for function, practice in SAFE_PRACTICE_FUNCTIONS.items():
            count = self.count_calls(function, content)
            if count:
                practices.append(
                    SafePracticeObservation(
                        practice=practice,
                        function=function,
                        description=f"Uses {function}()",
                        occurrences=count,
                    )
                )
        return practices

    def false_positive_filter(self, finding: Finding) -> FalsePositiveFilter:
        return self._category_filters.get(finding.vulnerability_type, self._general_filter)

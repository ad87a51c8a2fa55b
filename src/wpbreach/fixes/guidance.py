# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Manual remediation instructions."""

from __future__ import annotations

from wpbreach.models.fix import VulnerabilityRecord

FALLBACK_STEPS: list[str] = [
    "Review the vulnerability details carefully",
    "Consult security documentation for your specific case",
    "Create a backup before making any changes",
    "Test changes in a staging environment first",
    "Contact support if you need assistance",
]

TYPE_STEPS: dict[str, list[str]] = {
    "sql_injection": [
        "Rewrite the query with $wpdb->prepare() and %s / %d placeholders",
        "Sanitize request values with sanitize_text_field() or absint() before use",
        "Escape LIKE terms with $wpdb->esc_like()",
        "Whitelist ORDER BY columns and directions",
    ],
    "xss": [
        "Escape output for its context with esc_html(), esc_attr(), esc_url() or esc_js()",
        "Filter rich HTML with wp_kses() or wp_kses_post()",
        "Never echo $_GET, $_POST or $_REQUEST values directly",
    ],
    "code_injection": [
        "Remove eval(), assert() and create_function() calls that receive request data",
        "Replace dynamic callbacks with an explicit whitelist",
    ],
    "command_injection": [
        "Replace shell execution with native PHP or WordPress APIs",
        "Wrap any remaining arguments with escapeshellarg()",
    ],
    "file_upload": [
        "Validate uploads with wp_check_filetype_and_ext()",
        "Store uploads outside executable directories",
    ],
    "path_traversal": [
        "Resolve paths with realpath() and confirm they stay inside the allowed base directory",
        "Strip directory components from user input with basename()",
    ],
    "deserialization": [
        "Replace unserialize() on request data with json_decode()",
    ],
    "open_redirect": [
        "Redirect with wp_safe_redirect() and validate targets with wp_validate_redirect()",
    ],
}


class ManualFixGuidance:
    """Step lists for vulnerabilities that need a human."""

    def __init__(self, extra_steps: dict[str, list[str]] | None = None) -> None:
        self._steps = {**TYPE_STEPS, **(extra_steps or {})}

    def instructions_for(self, record: VulnerabilityRecord) -> list[str]:
        steps = [f"Locate {record.file} line {record.line}: {record.code}"]
        steps.extend(self._steps.get(record.vulnerability_type, FALLBACK_STEPS))
        if record.recommendation and record.recommendation not in steps:
            steps.append(record.recommendation)
        steps.append("Re-run the scan to confirm the finding is resolved")
        return steps

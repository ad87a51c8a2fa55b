# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Signatures for request handlers: forgery, file inclusion and missing auth.

Same flat layout as :mod:`wpbreach.patterns.general`. Handler checks that
need the surrounding code (a nonce or capability check near the match)
are left to the category's false-positive filter.
"""

from __future__ import annotations

from typing import Any

_INPUT = r"\$_(?:GET|POST|REQUEST|COOKIE)"
_INCLUDE = r"\b(?:include|require)(?:_once)?\s*\(?\s*"

REQUEST_HANDLING_PATTERNS: dict[str, dict[str, dict[str, Any]]] = {
    "csrf": {
        "form_without_nonce": {
            "pattern": r"""(?is)<form\b[^>]*?\bmethod\s*=\s*["']post["'][^>]*+>"""
            r"(?:(?!</form>|wp_nonce_field|_wpnonce|_wp_http_referer).)*+</form>",
            "severity": "high",
            "confidence": 0.7,
            "description": "POST form without CSRF protection (nonce field)",
            "cwe_id": "CWE-352",
            "references": ["https://developer.wordpress.org/apis/security/nonces/"],
            "recommendation": "Add wp_nonce_field() to the form and verify it with wp_verify_nonce()",
        },
        "ajax_action_handler": {
            "pattern": r"""(?i)add_action\s*\(\s*["']wp_ajax_(?:nopriv_)?\w+["']""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "AJAX action handler potentially without CSRF verification",
            "cwe_id": "CWE-352",
            "references": [],
            "recommendation": "Call check_ajax_referer() at the top of the AJAX handler",
        },
        "admin_post_handler": {
            "pattern": r"""(?i)add_action\s*\(\s*["']admin_post_(?:nopriv_)?\w+["']""",
            "severity": "high",
            "confidence": 0.6,
            "description": "Admin POST handler potentially without CSRF verification",
            "cwe_id": "CWE-352",
            "references": [],
            "recommendation": "Call check_admin_referer() in the admin POST handler",
        },
        "direct_post_processing": {
            "pattern": r"(?i)if\s*\(\s*(?:isset\s*\(\s*)?\$_POST\[[^\]]++\]",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Direct POST processing without CSRF check",
            "cwe_id": "CWE-352",
            "references": [],
            "recommendation": "Verify a nonce before acting on POST data",
        },
        "jquery_post": {
            "pattern": r"""(?i)\$\.post\s*\(\s*(?:ajaxurl|["'][^"']*admin-ajax\.php)""",
            "severity": "low",
            "confidence": 0.4,
            "description": "Client-side AJAX POST; confirm the request carries a nonce",
            "cwe_id": "CWE-352",
            "references": [],
            "recommendation": "Pass a wp_create_nonce() value with the request and verify it server-side",
        },
    },
    "file_inclusion": {
        "direct_include": {
            "pattern": r"(?i)" + _INCLUDE + r"""[^;]*?""" + _INPUT + r"\[[^\]]*+\]",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Direct file inclusion with user input",
            "cwe_id": "CWE-98",
            "references": ["https://owasp.org/www-project-web-security-testing-guide/"],
            "recommendation": "Never build include paths from request data; map input to a fixed allow-list",
        },
        "remote_file_inclusion": {
            "pattern": r"""(?i)""" + _INCLUDE + r"""["']?https?://[^;]*?\$_(?:GET|POST|REQUEST)""",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Remote file inclusion with user input",
            "cwe_id": "CWE-98",
            "references": [],
            "recommendation": "Never include remote files based on user input",
        },
        "path_concat": {
            "pattern": r"""(?i)""" + _INCLUDE + r"""["'][^"']*+["']\s*\.\s*\$\w+""",
            "severity": "high",
            "confidence": 0.8,
            "description": "File inclusion with path concatenation",
            "cwe_id": "CWE-98",
            "references": [],
            "recommendation": "Validate the variable part with basename() or an allow-list before including",
        },
        "dynamic_include": {
            "pattern": r"(?i)\b(?:include|require)(?:_once)?\s*\(\s*\$\w+\s*\)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Dynamic file inclusion - verify input validation",
            "cwe_id": "CWE-98",
            "references": [],
            "recommendation": "Confirm the included path cannot be influenced by the request",
        },
        "tainted_variable_inclusion": {
            "pattern": r"(?s)\$(\w++)\s*=\s*[^;]*?" + _INPUT + r"\[[^;]*+;.*?" + _INCLUDE + r"\$\1\b",
            "severity": "critical",
            "confidence": 0.85,
            "description": "Variable assigned from request data is later included",
            "cwe_id": "CWE-98",
            "references": [],
            "recommendation": "Validate and sanitize file paths from user input",
        },
        "traversal_sequence": {
            "pattern": r"(?i)\b(?:include|require|file_get_contents|fopen|readfile)(?:_once)?\s*\([^)]*"
            r"(?:\.\./|\.\.\\|%2e%2e(?:%2f|%5c)|\.\.%(?:2f|5c)|%252e%252e%252f)",
            "severity": "high",
            "confidence": 0.7,
            "description": "Path traversal sequence in file operation",
            "cwe_id": "CWE-22",
            "references": [],
            "recommendation": "Use basename() or validate file paths to prevent directory traversal",
        },
        "unsafe_file_write": {
            "pattern": r"(?i)\b(?:file_put_contents|fwrite|copy)\s*\([^)]*\$_(?:GET|POST|REQUEST|COOKIE|SERVER)",
            "severity": "high",
            "confidence": 0.8,
            "description": "File write or copy driven by user input",
            "cwe_id": "CWE-73",
            "references": [],
            "recommendation": "Validate and sanitize file paths before use",
        },
    },
    "auth_bypass": {
        "nopriv_ajax_handler": {
            "pattern": r"""(?i)add_action\s*\(\s*["']wp_ajax_nopriv_\w+["']""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "AJAX handler for non-logged users without proper checks",
            "cwe_id": "CWE-285",
            "references": [],
            "recommendation": "Keep sensitive operations out of nopriv handlers",
        },
        "auth_sql_injection": {
            "pattern": r"(?i)(?:user_login|user_pass|password)(?>.*?\$wpdb->(?:query|get_\w+))"
            r".*?\$_(?:GET|POST|REQUEST)",
            "severity": "critical",
            "confidence": 0.9,
            "description": "SQL injection in authentication code",
            "cwe_id": "CWE-89",
            "references": [],
            "recommendation": "Authenticate through wp_authenticate() and use $wpdb->prepare() for lookups",
        },
        "privilege_escalation": {
            "pattern": r"(?i)\b(?:wp_update_user|update_user_meta|add_user_meta)\s*\([^)]*(?:role|capabilit)",
            "severity": "critical",
            "confidence": 0.8,
            "description": "User role/capability modification without proper authorization",
            "cwe_id": "CWE-269",
            "references": [],
            "recommendation": "Check current_user_can('promote_users') before modifying user roles",
        },
        "timing_unsafe_comparison": {
            "pattern": r"""(?i)if\s*\(\s*\$\w*(?:pass|pwd|token|secret|hash)\w*\s*===?\s*(?:\$\w+|["'][^"']*+["'])""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Potential timing attack in authentication comparison",
            "cwe_id": "CWE-208",
            "references": [],
            "recommendation": "Use hash_equals() for secret comparisons",
        },
        "cookie_from_input": {
            "pattern": r"(?i)setcookie\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "Weak session handling with user input",
            "cwe_id": "CWE-384",
            "references": [],
            "recommendation": "Derive cookie values server-side and never echo request data into them",
        },
        "insecure_cookie": {
            "pattern": r"(?i)setcookie\s*\((?![^;]*(?:\btrue\s*,\s*true\b|httponly|samesite))[^;]*;",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Cookie set without secure flags",
            "cwe_id": "CWE-614",
            "references": [],
            "recommendation": "Set the secure and httponly flags for cookies",
        },
    },
}

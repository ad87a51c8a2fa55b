# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""SQL injection signatures for WordPress database access.

Same definition shape as :mod:`wpbreach.patterns.general`, grouped by
subcategory under the ``sql_injection`` category.
"""

from __future__ import annotations

from typing import Any

_WPDB_CALL = r"\$wpdb->(?:query|get_(?:var|row|col|results))\s*\("
_INPUT = r"\$_(?:GET|POST|REQUEST)"

SQL_INJECTION_PATTERNS: dict[str, dict[str, dict[str, Any]]] = {
    "basic_injection": {
        "user_input_in_query": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*\$_(?:GET|POST|REQUEST|COOKIE)",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Direct user input in SQL query",
            "cwe_id": "CWE-89",
            "references": [
                "https://wordpress.org/support/article/hardening-wordpress/#securing-wp-config-php",
                "https://developer.wordpress.org/apis/handbook/database/",
            ],
        },
        "concatenated_user_input": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""[^)]*["'].*?""" + _INPUT,
            "severity": "critical",
            "confidence": 0.85,
            "description": "User input concatenated into SQL query",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "dynamic_table_names": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""[^)]*FROM\s+["']?\$\w+["']?""",
            "severity": "high",
            "confidence": 0.7,
            "description": "Dynamic table name in SQL query",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "unescaped_variables": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""[^)]*["'][^"']*\$\w+[^"']*+["'][^)]*+\)""",
            "severity": "high",
            "confidence": 0.6,
            "description": "Potentially unescaped variable in SQL query",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "wordpress_specific": {
        "missing_prepare": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""\s*["'][^"']*%[sd][^"']*+["'](?!\s*,\s*\$wpdb->prepare)""",
            "severity": "high",
            "confidence": 0.8,
            "description": "SQL query with placeholders but no prepare() call",
            "cwe_id": "CWE-89",
            "references": ["https://developer.wordpress.org/reference/classes/wpdb/prepare/"],
        },
        "improper_prepare_usage": {
            "pattern": r"(?i)\$wpdb->prepare\s*\([^)]*\$_(?:GET|POST|REQUEST|COOKIE)",
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input passed directly to wpdb::prepare()",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "custom_sql_functions": {
            "pattern": r"(?i)(?:mysql_query|mysqli_query|pg_query)\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.95,
            "description": "Raw SQL function with user input",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "meta_query_injection": {
            "pattern": r"(?i)(?:meta_(?:key|value|query)|get_(?:user|post)_meta)\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.7,
            "description": "User input in meta query without sanitization",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "advanced_patterns": {
        "blind_injection": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*(?:SLEEP|BENCHMARK|WAITFOR)\s*\(",
            "severity": "high",
            "confidence": 0.8,
            "description": "Time-based blind SQL injection pattern",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "union_injection": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*UNION(?:\s+ALL)?\s+SELECT",
            "severity": "high",
            "confidence": 0.75,
            "description": "UNION-based SQL injection pattern",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "error_based_injection": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*(?:extractvalue|updatexml|exp)\s*\(",
            "severity": "high",
            "confidence": 0.8,
            "description": "Error-based SQL injection pattern",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "order_by_injection": {
            "pattern": r"""(?i)ORDER\s+BY\s+["']?\$\w+["']?(?!\s+(?:ASC|DESC))""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Potential ORDER BY injection",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "filter_evasion": {
        "comment_evasion": {
            "pattern": r"(?s)" + _WPDB_CALL + r"[^)]*/\*.*?\*/",
            "severity": "medium",
            "confidence": 0.6,
            "description": "SQL comment in query (potential evasion)",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "encoded_input": {
            "pattern": r"(?i)(?:urldecode|base64_decode|hex2bin)\s*\(\s*" + _INPUT,
            "severity": "medium",
            "confidence": 0.5,
            "description": "Decoded user input may bypass filters",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "case_manipulation": {
            "pattern": r"(?i)(?:strtoupper|strtolower)\s*\(\s*" + _INPUT,
            "severity": "low",
            "confidence": 0.4,
            "description": "Case manipulation may bypass filters",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "dangerous_functions": {
        "eval_with_sql": {
            "pattern": r"(?i)eval\s*\([^)]*\$wpdb",
            "severity": "critical",
            "confidence": 0.9,
            "description": "eval() with database operations",
            "cwe_id": "CWE-94",
            "references": [],
        },
        "create_function_sql": {
            "pattern": r"(?i)create_function\s*\([^)]*\$wpdb",
            "severity": "critical",
            "confidence": 0.9,
            "description": "create_function() with database operations",
            "cwe_id": "CWE-94",
            "references": [],
        },
        "preg_replace_e_sql": {
            "pattern": r"(?i)preg_replace\s*\([^,]*/[^/]*e[^/]*+/[^,]*+,[^,]*\$wpdb",
            "severity": "critical",
            "confidence": 0.85,
            "description": "preg_replace /e modifier with database operations",
            "cwe_id": "CWE-94",
            "references": [],
        },
    },
    "sanitization_bypass": {
        "incomplete_sanitization": {
            "pattern": r"(?i)(?:stripslashes|addslashes)\s*\(\s*" + _INPUT + r"[^)]*+\).*?\$wpdb",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Weak sanitization before database operation",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "double_sanitization": {
            "pattern": r"(?i)(?:sanitize_\w+|esc_sql)\s*\(\s*(?:sanitize_\w+|esc_sql)\s*\(",
            "severity": "low",
            "confidence": 0.3,
            "description": "Double sanitization may indicate confusion",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "wrong_sanitization": {
            "pattern": r"(?i)(?:sanitize_email|sanitize_url)\s*\([^)]*+\)(?>.*?\$wpdb->)(?>.*?WHERE).*?LIKE",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Wrong sanitization function for SQL context",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "context_specific": {
        "search_injection": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""[^)]*LIKE\s*["']%[^"']*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in LIKE clause without escaping",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "limit_injection": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*LIMIT\s+" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input in LIMIT clause",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "where_injection": {
            "pattern": r"""(?i)""" + _WPDB_CALL + r"""[^)]*WHERE\s+[^=]*=\s*["']?""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in WHERE clause without preparation",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "stored_procedures": {
        "procedure_call": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*(?:CALL|EXEC)\s+\w+\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in stored procedure call",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "second_order": {
        "stored_user_input": {
            "pattern": r"(?s)get_(?:option|user_meta|post_meta)\s*\([^)]*+\)"
            r".*?\$wpdb->(?:query|get_(?:var|row|col|results))",
            "severity": "medium",
            "confidence": 0.4,
            "description": "Stored user data used in SQL query (potential second-order injection)",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "session_data_in_sql": {
            "pattern": r"(?s)\$_SESSION\s*\[[^\]]*+\].*?\$wpdb->(?:query|get_(?:var|row|col|results))",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Session data used in SQL query without validation",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "wordpress_queries": {
        "wp_query_injection": {
            "pattern": r"(?i)new\s+WP_Query\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in WP_Query without sanitization",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "get_posts_injection": {
            "pattern": r"(?i)get_posts\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in get_posts() without sanitization",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "custom_post_query": {
            "pattern": r"(?i)\$wpdb->posts(?>.*?WHERE).*?" + _INPUT,
            "severity": "high",
            "confidence": 0.7,
            "description": "User input in direct posts table query",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
    "numeric_injection": {
        "untyped_numeric": {
            "pattern": r"(?i)" + _WPDB_CALL + r"[^)]*=\s*" + _INPUT + r"\s*[^)]*+\)",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Numeric user input without type casting",
            "cwe_id": "CWE-89",
            "references": [],
        },
        "missing_intval": {
            "pattern": r"(?i)"
            + _WPDB_CALL
            + r"[^)]*(?:user_id|post_id|term_id)\s*=\s*"
            + _INPUT
            + r"(?![^)]*(?:intval|absint|\(int\)))",
            "severity": "medium",
            "confidence": 0.7,
            "description": "ID parameter without integer validation",
            "cwe_id": "CWE-89",
            "references": [],
        },
    },
}

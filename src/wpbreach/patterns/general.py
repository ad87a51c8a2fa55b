# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""General vulnerability signatures for WordPress PHP code.

Each category maps rule ids to plain definitions:

- ``pattern``: regular expression source, flags inline
- ``severity``: critical | high | medium | low
- ``confidence``: prior probability of a true positive, 0.0-1.0
- ``description``: human-readable explanation
- ``cwe_id``: Common Weakness Enumeration id
- ``references``: advisory URLs
"""

from __future__ import annotations

from typing import Any

_INPUT = r"\$_(?:GET|POST|REQUEST|COOKIE)"

GENERAL_PATTERNS: dict[str, dict[str, dict[str, Any]]] = {
    "code_injection": {
        "eval_user_input": {
            "pattern": r"(?i)eval\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.95,
            "description": "eval() with user input - code injection",
            "cwe_id": "CWE-94",
            "references": [
                "https://owasp.org/www-community/attacks/Code_Injection",
                "https://wordpress.org/support/article/hardening-wordpress/",
            ],
        },
        "create_function_injection": {
            "pattern": r"(?i)create_function\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "create_function() with user input",
            "cwe_id": "CWE-94",
            "references": [],
        },
        "preg_replace_e_modifier": {
            "pattern": r"(?i)preg_replace\s*\([^,]*/[^/]*e[^/]*+/[^,]*+,\s*[^,]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "preg_replace /e modifier with user input",
            "cwe_id": "CWE-94",
            "references": [],
        },
        "assert_injection": {
            "pattern": r"(?i)assert\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "assert() with user input",
            "cwe_id": "CWE-94",
            "references": [],
        },
    },
    "command_injection": {
        "shell_exec": {
            "pattern": r"(?i)(?:shell_exec|exec|system|passthru|popen|proc_open)\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.95,
            "description": "Command execution with user input",
            "cwe_id": "CWE-78",
            "references": ["https://owasp.org/www-community/attacks/Command_Injection"],
        },
        "backtick_execution": {
            "pattern": r"(?i)`[^`]*" + _INPUT + r"[^`]*+`",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Backtick command execution with user input",
            "cwe_id": "CWE-78",
            "references": [],
        },
        "wp_filesystem_commands": {
            "pattern": r"(?i)WP_Filesystem.*?(?:put_contents|chmod|chown)\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "WP_Filesystem operations with user input",
            "cwe_id": "CWE-78",
            "references": [],
        },
    },
    "file_upload": {
        "unrestricted_upload": {
            "pattern": r"(?i)move_uploaded_file\s*\([^)]*\$_FILES(?![^)]*(?:pathinfo|wp_check_filetype))",
            "severity": "critical",
            "confidence": 0.8,
            "description": "File upload without type validation",
            "cwe_id": "CWE-434",
            "references": ["https://owasp.org/www-community/vulnerabilities/Unrestricted_File_Upload"],
        },
        "dangerous_file_types": {
            "pattern": r"""(?i)\$_FILES\[.*?\]\[["']type["']\].*?(?:php|phtml|php3|php4|php5|exe|asp|jsp|sh|pl|py)""",
            "severity": "high",
            "confidence": 0.7,
            "description": "Upload allowing dangerous file types",
            "cwe_id": "CWE-434",
            "references": [],
        },
        "wp_handle_upload_bypass": {
            "pattern": r"""(?i)wp_handle_upload\s*\([^)]*["']test_form["']\s*=>\s*false""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "wp_handle_upload with form test disabled",
            "cwe_id": "CWE-434",
            "references": [],
        },
    },
    "path_traversal": {
        "directory_traversal": {
            "pattern": r"(?i)(?:file_get_contents|fopen|readfile|include|require)\s*\([^)]*"
            + _INPUT
            + r".*?\.\.(?:/|\\)",
            "severity": "high",
            "confidence": 0.8,
            "description": "Path traversal in file operations",
            "cwe_id": "CWE-22",
            "references": ["https://owasp.org/www-community/attacks/Path_Traversal"],
        },
        "unvalidated_file_path": {
            "pattern": r"(?i)(?:file_get_contents|fopen|readfile)\s*\([^)]*"
            + _INPUT
            + r"(?![^)]*(?:basename|realpath|wp_normalize_path))",
            "severity": "medium",
            "confidence": 0.6,
            "description": "File operation with unvalidated user path",
            "cwe_id": "CWE-22",
            "references": [],
        },
        "wp_upload_dir_traversal": {
            "pattern": r"(?i)wp_upload_dir\(\)[^;]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.5,
            "description": "User input in upload directory path",
            "cwe_id": "CWE-22",
            "references": [],
        },
    },
    "deserialization": {
        "unsafe_unserialize": {
            "pattern": r"(?i)unserialize\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "Unsafe deserialization of user input",
            "cwe_id": "CWE-502",
            "references": ["https://owasp.org/www-community/vulnerabilities/PHP_Object_Injection"],
        },
        "maybe_unserialize_user_input": {
            "pattern": r"(?i)maybe_unserialize\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "maybe_unserialize with user input",
            "cwe_id": "CWE-502",
            "references": [],
        },
        "wp_cache_deserialization": {
            "pattern": r"(?i)wp_cache_(?:get|set)\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.5,
            "description": "Cache operations with user input (potential deserialization)",
            "cwe_id": "CWE-502",
            "references": [],
        },
    },
    "information_disclosure": {
        "error_display": {
            "pattern": r"""(?i)(?:ini_set|error_reporting)\s*\([^)]*["'](?:display_errors|E_ALL)["'].*?(?:1|true|On)""",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Error display enabled (information disclosure)",
            "cwe_id": "CWE-200",
            "references": [],
        },
        "debug_output": {
            "pattern": r"(?i)(?:var_dump|print_r|var_export)\s*\([^)]*\$_(?:GET|POST|REQUEST|COOKIE|SESSION)",
            "severity": "medium",
            "confidence": 0.7,
            "description": "Debug output with user/session data",
            "cwe_id": "CWE-200",
            "references": [],
        },
        "phpinfo_exposure": {
            "pattern": r"(?i)phpinfo\s*\(\s*\)",
            "severity": "medium",
            "confidence": 0.8,
            "description": "phpinfo() call (information disclosure)",
            "cwe_id": "CWE-200",
            "references": [],
        },
        "wp_debug_enabled": {
            "pattern": r"""(?i)define\s*\(\s*["']WP_DEBUG["'],\s*true\s*\)""",
            "severity": "low",
            "confidence": 0.5,
            "description": "WordPress debug mode enabled",
            "cwe_id": "CWE-200",
            "references": [],
        },
    },
    "weak_cryptography": {
        "md5_hashing": {
            "pattern": r"(?i)md5\s*\([^)]*(?:password|pass|pwd|secret)",
            "severity": "medium",
            "confidence": 0.7,
            "description": "MD5 used for password hashing (weak)",
            "cwe_id": "CWE-327",
            "references": [
                "https://owasp.org/www-community/vulnerabilities/Use_of_a_Broken_or_Risky_Cryptographic_Algorithm"
            ],
        },
        "sha1_hashing": {
            "pattern": r"(?i)sha1\s*\([^)]*(?:password|pass|pwd|secret)",
            "severity": "medium",
            "confidence": 0.7,
            "description": "SHA1 used for password hashing (weak)",
            "cwe_id": "CWE-327",
            "references": [],
        },
        "weak_random": {
            "pattern": r"(?i)(?:rand|mt_rand|srand)\s*\(\s*\).*?(?:password|token|secret|key|nonce)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Weak random number generation for security",
            "cwe_id": "CWE-338",
            "references": [],
        },
        "hardcoded_secrets": {
            "pattern": r"""(?i)(?:password|secret|key|token)\s*=\s*["'][a-zA-Z0-9]{8,}["']""",
            "severity": "high",
            "confidence": 0.6,
            "description": "Hardcoded secret/password detected",
            "cwe_id": "CWE-798",
            "references": [],
        },
    },
    "open_redirect": {
        "redirect_user_input": {
            "pattern": r"""(?i)(?:wp_redirect|header\s*\(\s*["']Location:)\s*[^)]*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.8,
            "description": "Open redirect with user input",
            "cwe_id": "CWE-601",
            "references": ["https://owasp.org/www-community/attacks/Unvalidated_Redirects_and_Forwards"],
        },
        "wp_safe_redirect_bypass": {
            "pattern": r"(?i)wp_redirect\s*\([^)]*" + _INPUT + r"(?![^)]*wp_validate_redirect)",
            "severity": "medium",
            "confidence": 0.7,
            "description": "wp_redirect without validation (prefer wp_safe_redirect)",
            "cwe_id": "CWE-601",
            "references": [],
        },
    },
    "xml_external_entity": {
        "libxml_external_entities": {
            "pattern": r"(?i)libxml_disable_entity_loader\s*\(\s*false\s*\)",
            "severity": "high",
            "confidence": 0.8,
            "description": "XML external entity loading enabled",
            "cwe_id": "CWE-611",
            "references": [
                "https://owasp.org/www-community/vulnerabilities/XML_External_Entity_(XXE)_Processing"
            ],
        },
        "simplexml_load_string": {
            "pattern": r"(?i)simplexml_load_string\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "XML parsing with user input (potential XXE)",
            "cwe_id": "CWE-611",
            "references": [],
        },
        "domdocument_load": {
            "pattern": r"(?i)DOMDocument.*?(?:load|loadXML)\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "DOMDocument XML loading with user input",
            "cwe_id": "CWE-611",
            "references": [],
        },
    },
    "ldap_injection": {
        "ldap_search_injection": {
            "pattern": r"(?i)ldap_search\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "LDAP search with user input",
            "cwe_id": "CWE-90",
            "references": [],
        },
        "ldap_bind_injection": {
            "pattern": r"(?i)ldap_bind\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "LDAP bind with user input",
            "cwe_id": "CWE-90",
            "references": [],
        },
    },
    "session_fixation": {
        "session_id_user_input": {
            "pattern": r"(?i)session_id\s*\(\s*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "Session ID set from user input (session fixation)",
            "cwe_id": "CWE-384",
            "references": [],
        },
        "missing_session_regenerate": {
            "pattern": r"(?s)wp_login\|login.*?(?!session_regenerate_id)",
            "severity": "medium",
            "confidence": 0.4,
            "description": "Login without session regeneration",
            "cwe_id": "CWE-384",
            "references": [],
        },
    },
    "insecure_randomness": {
        "predictable_tokens": {
            "pattern": r"(?i)(?:nonce|token|csrf)\s*=\s*(?:md5|sha1)\s*\([^)]*(?:time|date|microtime)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Predictable token generation",
            "cwe_id": "CWE-330",
            "references": [],
        },
        "weak_wp_nonce": {
            "pattern": r"(?i)wp_create_nonce\s*\([^)]*" + _INPUT,
            "severity": "low",
            "confidence": 0.5,
            "description": "wp_create_nonce with user input",
            "cwe_id": "CWE-330",
            "references": [],
        },
    },
    "race_conditions": {
        "file_race_condition": {
            "pattern": r"(?s)(?:file_exists|is_file)\s*\([^)]*+\).*?(?:fopen|file_get_contents)\s*\([^)]*+\)",
            "severity": "medium",
            "confidence": 0.4,
            "description": "Potential TOCTOU race condition",
            "cwe_id": "CWE-367",
            "references": [],
        },
    },
    "server_side_request_forgery": {
        "curl_user_url": {
            "pattern": r"(?i)(?:curl_setopt|wp_remote_(?:get|post|request))\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "HTTP request with user-controlled URL (SSRF)",
            "cwe_id": "CWE-918",
            "references": ["https://owasp.org/www-community/attacks/Server_Side_Request_Forgery"],
        },
        "file_get_contents_url": {
            "pattern": r"(?i)file_get_contents\s*\([^)]*(?:https?:|ftp:)[^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "file_get_contents with user URL (SSRF)",
            "cwe_id": "CWE-918",
            "references": [],
        },
    },
    "business_logic": {
        "price_manipulation": {
            "pattern": r"(?i)(?:price|cost|amount|total)\s*=\s*" + _INPUT,
            "severity": "high",
            "confidence": 0.6,
            "description": "Price/amount set from user input",
            "cwe_id": "CWE-840",
            "references": [],
        },
        "quantity_manipulation": {
            "pattern": r"(?i)(?:quantity|qty|count)\s*=\s*" + _INPUT + r"(?![^;]*(?:intval|absint))",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Quantity without validation",
            "cwe_id": "CWE-840",
            "references": [],
        },
    },
    "wordpress_core_bypass": {
        "capability_bypass": {
            "pattern": r"(?i)\$current_user->allcaps\[.*?\]\s*=\s*true",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Direct capability manipulation",
            "cwe_id": "CWE-269",
            "references": [],
        },
        "role_manipulation": {
            "pattern": r"""(?i)\$current_user->roles\[\d+\]\s*=\s*["']administrator["']""",
            "severity": "critical",
            "confidence": 0.9,
            "description": "Direct role manipulation to administrator",
            "cwe_id": "CWE-269",
            "references": [],
        },
        "wp_die_bypass": {
            "pattern": r"""(?i)wp_die\s*\(\s*["']["']\s*\)""",
            "severity": "low",
            "confidence": 0.3,
            "description": "Empty wp_die() call",
            "cwe_id": "CWE-754",
            "references": [],
        },
    },
}

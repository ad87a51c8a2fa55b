# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Cross-site scripting signatures, grouped by output context.

Nested like :mod:`wpbreach.patterns.sql_injection`: subcategory -> rule id
-> definition. The rules complement the dedicated XSS detector with
WordPress sinks it does not model (shortcodes, options, widgets, feeds).
Redirect and include sinks live in ``open_redirect`` and
``file_inclusion``.
"""

from __future__ import annotations

from typing import Any

_INPUT = r"\$_(?:GET|POST|REQUEST|COOKIE)"

XSS_PATTERNS: dict[str, dict[str, dict[str, Any]]] = {
    "reflected_xss": {
        "direct_echo": {
            "pattern": r"(?i)echo\s+" + _INPUT + r"\s*\[",
            "severity": "high",
            "confidence": 0.9,
            "description": "Direct echo of user input without escaping",
            "cwe_id": "CWE-79",
            "references": ["https://developer.wordpress.org/apis/security/escaping/"],
        },
        "print_user_input": {
            "pattern": r"(?i)\b(?:print|printf)\s*\(\s*[^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.9,
            "description": "Print statement with user input without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "html_concatenation": {
            "pattern": r"""(?i)["']<[^>]*["']\.?\s*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "HTML concatenation with user input",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "shortcode_output": {
            "pattern": r"(?i)add_shortcode\s*\([^,]*,[^}]*" + _INPUT + r"(?![^}]*esc_)",
            "severity": "high",
            "confidence": 0.8,
            "description": "Shortcode outputs user input without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "stored_xss": {
        "unescaped_option": {
            "pattern": r"(?i)echo\s+get_option\s*\([^)]*\)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Unescaped option output (potential stored XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "unescaped_meta": {
            "pattern": r"(?i)echo\s+(?:get_(?:user|post)_meta|get_metadata)\s*\([^)]*\)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Unescaped metadata output (potential stored XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "comment_content": {
            "pattern": r"(?i)echo\s+(?:\$comment->comment_content|get_comment_text\s*\([^)]*\))",
            "severity": "high",
            "confidence": 0.7,
            "description": "Unescaped comment content output",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "post_content": {
            "pattern": r"(?i)echo\s+(?:\$post->post_content|get_the_content\s*\([^)]*\))",
            "severity": "medium",
            "confidence": 0.5,
            "description": "Unescaped post content (may contain user data)",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "javascript_context": {
        "js_variable_injection": {
            "pattern": r"""(?i)\b(?:var|let|const)\s+\w+\s*=\s*["'][^"']*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in JavaScript variable without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "js_function_call": {
            "pattern": r"(?i)\b(?:alert|confirm|prompt|setTimeout|setInterval)\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "User input in dangerous JavaScript function",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "dom_manipulation": {
            "pattern": r"(?i)(?:innerHTML|outerHTML|insertAdjacentHTML)\s*\+?=\s*[^;]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in DOM manipulation without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "wp_localize_script": {
            "pattern": r"(?i)wp_localize_script\s*\([^,]*,[^,]*,[^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input in wp_localize_script without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "attribute_context": {
        "unescaped_attributes": {
            "pattern": r"""(?i)\b(?:href|src|onclick|onload|onerror|style|class|id)\s*=\s*["'][^"']*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in HTML attribute without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "data_attributes": {
            "pattern": r"""(?i)data-[^=\s]*+=\s*["'][^"']*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in data attribute without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "event_attributes": {
            "pattern": r"""(?i)\bon\w+\s*=\s*["'][^"']*""" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "User input in event attribute (critical XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "css_context": {
        "style_injection": {
            "pattern": r"""(?i)\bstyle\s*=\s*["'][^"']*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input in style attribute",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "css_property_injection": {
            "pattern": r"(?i)\b(?:background|background-image|content)\s*:\s*[^;]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in CSS property value",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "url_context": {
        "unescaped_url": {
            "pattern": r"""(?i)\b(?:href|src|action)\s*=\s*["'][^"']*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input in URL without validation",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "wordpress_specific": {
        "wp_die_message": {
            "pattern": r"(?i)wp_die\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in wp_die message without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "admin_notice": {
            "pattern": r"""(?is)add_action\s*\(\s*["']admin_notices["'].*?echo\s*[^;]*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in admin notice without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "wp_mail_html": {
            "pattern": r"""(?i)wp_mail\s*\([^)]*["']text/html["'][^)]*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in HTML email without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "widget_output": {
            "pattern": r"(?i)\b(?:widget|before_widget|after_widget)\b[^;]*echo\s*[^;]*" + _INPUT,
            "severity": "high",
            "confidence": 0.7,
            "description": "User input in widget output without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "filter_bypass": {
        "incomplete_escaping": {
            "pattern": r"(?i)htmlspecialchars\s*\((?![^)]*ENT_QUOTES)[^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.5,
            "description": "Incomplete HTML escaping (missing ENT_QUOTES)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "strip_tags_bypass": {
            "pattern": r"(?i)strip_tags\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.4,
            "description": "strip_tags() used for XSS prevention (bypassable)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "wrong_escaping_context": {
            "pattern": r"(?i)esc_html\s*\([^)]*+\).*?\b(?:href|src|onclick)\s*=",
            "severity": "medium",
            "confidence": 0.6,
            "description": "Wrong escaping function for context",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "template_injection": {
        "get_template_part_injection": {
            "pattern": r"(?i)get_template_part\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in get_template_part()",
            "cwe_id": "CWE-98",
            "references": [],
        },
        "load_template_injection": {
            "pattern": r"(?i)load_template\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in load_template()",
            "cwe_id": "CWE-98",
            "references": [],
        },
    },
    "dom_xss": {
        "document_write": {
            "pattern": r"(?i)document\.write\s*\([^)]*(?:location\.|window\.location|document\.URL)",
            "severity": "high",
            "confidence": 0.8,
            "description": "document.write with location data (DOM XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "location_hash": {
            "pattern": r"(?i)(?:innerHTML|outerHTML|insertAdjacentHTML)\s*\+?=\s*[^;]*location\.hash",
            "severity": "high",
            "confidence": 0.8,
            "description": "DOM manipulation with location.hash (DOM XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "url_parameters": {
            "pattern": r"(?i)(?:innerHTML|outerHTML|insertAdjacentHTML)\s*\+?=\s*[^;]*(?:URLSearchParams|new URL)",
            "severity": "medium",
            "confidence": 0.6,
            "description": "DOM manipulation with URL parameters",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "ajax_xss": {
        "ajax_response_html": {
            "pattern": r"(?s)wp_ajax_\w+[^}]*echo\s*[^;]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "AJAX response with unescaped user input",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "json_response_html": {
            "pattern": r"(?i)wp_send_json(?:_success|_error)?\s*\([^)]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "JSON response with user input (potential XSS)",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "xml_xss": {
        "xml_output": {
            "pattern": r"""(?i)(?:header\s*\(\s*["']Content-Type:\s*text/xml|<\?xml)[^>]*""" + _INPUT,
            "severity": "medium",
            "confidence": 0.7,
            "description": "User input in XML output without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
        "rss_feed": {
            "pattern": r"(?i)\b(?:rss|feed)\b[^}]*echo\s*[^;]*" + _INPUT,
            "severity": "medium",
            "confidence": 0.6,
            "description": "User input in RSS/XML feed without escaping",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "svg_xss": {
        "svg_content": {
            "pattern": r"""(?i)(?:header\s*\(\s*["']Content-Type:\s*image/svg|<svg)[^>]*""" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "User input in SVG content (XSS via SVG)",
            "cwe_id": "CWE-79",
            "references": [],
        },
    },
    "serialization_xss": {
        "unserialize_output": {
            "pattern": r"(?i)echo\s*[^;]*\bunserialize\s*\([^)]*" + _INPUT,
            "severity": "critical",
            "confidence": 0.9,
            "description": "Unserialize with user input and output (critical)",
            "cwe_id": "CWE-502",
            "references": [],
        },
        "maybe_unserialize_output": {
            "pattern": r"(?i)echo\s*[^;]*maybe_unserialize\s*\([^)]*" + _INPUT,
            "severity": "high",
            "confidence": 0.8,
            "description": "maybe_unserialize with user input and output",
            "cwe_id": "CWE-502",
            "references": [],
        },
    },
}

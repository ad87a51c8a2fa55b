# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detection rule tables and the pattern registry."""

from wpbreach.patterns.general import GENERAL_PATTERNS
from wpbreach.patterns.registry import (
    SQL_INJECTION_CATEGORY,
    XSS_CATEGORY,
    PatternRegistry,
    get_registry,
    reset_registry,
)
from wpbreach.patterns.request_handling import REQUEST_HANDLING_PATTERNS
from wpbreach.patterns.sql_injection import SQL_INJECTION_PATTERNS
from wpbreach.patterns.xss import XSS_PATTERNS
from wpbreach.patterns.yaml_loader import load_yaml_rules

__all__ = [
    "GENERAL_PATTERNS",
    "REQUEST_HANDLING_PATTERNS",
    "SQL_INJECTION_CATEGORY",
    "SQL_INJECTION_PATTERNS",
    "XSS_CATEGORY",
    "XSS_PATTERNS",
    "PatternRegistry",
    "get_registry",
    "load_yaml_rules",
    "reset_registry",
]

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Rule registration and discovery.

The registry holds every :class:`PatternRule` as a three-level taxonomy
(category -> subcategory -> rules) in declaration order. Declaration
order is significant: detectors report overlapping matches in the order
their rules were declared.
"""

from __future__ import annotations

import logging
import threading
import time
from collections import Counter
from typing import TYPE_CHECKING, Any

import regex
from pydantic import ValidationError

from wpbreach.core.exceptions import ConfigurationError, PatternCompileError
from wpbreach.models.rule import PatternRule, RuleDefinition
from wpbreach.patterns.general import GENERAL_PATTERNS
from wpbreach.patterns.matching import iter_matches
from wpbreach.patterns.request_handling import REQUEST_HANDLING_PATTERNS
from wpbreach.patterns.sql_injection import SQL_INJECTION_PATTERNS
from wpbreach.patterns.xss import XSS_PATTERNS

if TYPE_CHECKING:
    from wpbreach.core.config import Settings

logger = logging.getLogger("wpbreach.patterns.registry")

SQL_INJECTION_CATEGORY = "sql_injection"
XSS_CATEGORY = "xss"


class PatternRegistry:
    """Central catalogue of compiled detection rules."""

    def __init__(self) -> None:
        self._taxonomy: dict[str, dict[str, list[PatternRule]]] = {}
        self._by_key: dict[str, PatternRule] = {}
        self.compile_errors: list[PatternCompileError] = []
        self._loaded = False
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load(self) -> PatternRegistry:
        """Load the built-in tables. Calling it again is a no-op."""
        with self._lock:
            if self._loaded:
                return self

            for flat in (GENERAL_PATTERNS, REQUEST_HANDLING_PATTERNS):
                for category, rules in flat.items():
                    for rule_id, raw in rules.items():
                        self._load_builtin(category, category, rule_id, raw)

            for category, nested in ((XSS_CATEGORY, XSS_PATTERNS), (SQL_INJECTION_CATEGORY, SQL_INJECTION_PATTERNS)):
                for subcategory, rules in nested.items():
                    for rule_id, raw in rules.items():
                        self._load_builtin(category, subcategory, rule_id, raw)

            self._loaded = True

        logger.info(
            "Loaded %d pattern rules in %d categories (%d rejected)",
            len(self._by_key),
            len(self._taxonomy),
            len(self.compile_errors),
        )
        return self

    def _load_builtin(self, category: str, subcategory: str, rule_id: str, raw: dict[str, Any]) -> None:
        definition = RuleDefinition(id=rule_id, category=category, subcategory=subcategory, **raw)
        try:
            self._insert(self._compile(definition, source="builtin"))
        except PatternCompileError as exc:
            logger.error("Excluding malformed rule %s", exc)
            self.compile_errors.append(exc)

    @staticmethod
    def _compile(definition: RuleDefinition, *, source: str) -> PatternRule:
        subcategory = definition.resolved_subcategory
        key = f"{definition.category}/{subcategory}/{definition.id}"
        try:
            compiled = regex.compile(definition.pattern)
        except regex.error as exc:
            raise PatternCompileError(key, str(exc)) from exc

        return PatternRule(
            id=definition.id,
            category=definition.category,
            subcategory=subcategory,
            regex=compiled,
            severity=definition.severity,
            confidence=definition.confidence,
            description=definition.description,
            cwe_id=definition.cwe_id,
            references=tuple(definition.references),
            recommendation=definition.recommendation,
            source=source,
        )

    def _insert(self, rule: PatternRule) -> None:
        self._taxonomy.setdefault(rule.category, {}).setdefault(rule.subcategory, []).append(rule)
        self._by_key[rule.key] = rule

    # ------------------------------------------------------------------
    # Custom rules
    # ------------------------------------------------------------------

    def validate_definition(self, definition: dict[str, Any] | RuleDefinition) -> list[str]:
        """Return human-readable problems with *definition*; empty when valid."""
        if isinstance(definition, RuleDefinition):
            parsed = definition
        else:
            try:
                parsed = RuleDefinition(**definition)
            except ValidationError as exc:
                return [
                    f"{'.'.join(str(p) for p in err['loc']) or 'rule'}: {err['msg']}"
                    for err in exc.errors()
                ]
            except TypeError as exc:
                return [str(exc)]

        errors: list[str] = []
        try:
            regex.compile(parsed.pattern)
        except regex.error as exc:
            errors.append(f"pattern: invalid regular expression ({exc})")

        key = f"{parsed.category}/{parsed.resolved_subcategory}/{parsed.id}"
        if key in self._by_key:
            errors.append(f"id: rule {key} already exists")
        return errors

    def add_rule(self, definition: dict[str, Any] | RuleDefinition, *, source: str = "custom") -> PatternRule:
        """Validate and register a single rule, returning the compiled rule."""
        errors = self.validate_definition(definition)
        if errors:
            raise ConfigurationError("invalid rule definition: " + "; ".join(errors))

        parsed = definition if isinstance(definition, RuleDefinition) else RuleDefinition(**definition)
        rule = self._compile(parsed, source=source)
        with self._lock:
            self._insert(rule)
        logger.debug("Registered %s rule %s", source, rule.key)
        return rule

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def categories(self) -> list[str]:
        return list(self._taxonomy)

    def subcategories(self, category: str) -> list[str]:
        return list(self._taxonomy.get(category, {}))

    def rules_for_category(self, category: str) -> list[PatternRule]:
        """Rules for ``category`` or ``category/subcategory`` in declaration order."""
        name, _, subcategory = category.partition("/")
        groups = self._taxonomy.get(name, {})
        if subcategory:
            return list(groups.get(subcategory, []))
        return [rule for rules in groups.values() for rule in rules]

    def get_rule(self, key: str) -> PatternRule | None:
        return self._by_key.get(key)

    def all_rules(self) -> list[PatternRule]:
        return [rule for category in self._taxonomy for rule in self.rules_for_category(category)]

    def __len__(self) -> int:
        return len(self._by_key)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    @staticmethod
    def test_pattern(pattern: str, content: str) -> dict[str, Any]:
        """Run an ad-hoc *pattern* against *content* and report every match."""
        try:
            compiled = regex.compile(pattern)
        except regex.error as exc:
            return {"valid": False, "error": str(exc), "matches": [], "match_count": 0, "execution_ms": 0.0}

        start = time.perf_counter()
        matches = [
            {"match": m.text, "offset": m.offset, "line": m.line, "column": m.column}
            for m in iter_matches(compiled, content)
        ]
        elapsed = (time.perf_counter() - start) * 1000
        return {
            "valid": True,
            "error": None,
            "matches": matches,
            "match_count": len(matches),
            "execution_ms": round(elapsed, 3),
        }

    def statistics(self) -> dict[str, Any]:
        rules = self.all_rules()
        return {
            "total_rules": len(rules),
            "total_categories": len(self._taxonomy),
            "by_category": {c: len(self.rules_for_category(c)) for c in self._taxonomy},
            "by_severity": dict(Counter(str(r.severity) for r in rules)),
            "custom_rules": sum(1 for r in rules if r.source != "builtin"),
            "compile_errors": len(self.compile_errors),
        }


_registries: dict[str, PatternRegistry] = {}
_default_lock = threading.Lock()


def get_registry(settings: Settings | None = None) -> PatternRegistry:
    """Return the shared registry for *settings*, loading it on first use.

    Registries are cached per ``custom_rules_dir`` so callers configured
    with different rule directories never see each other's custom rules.
    """
    from wpbreach.core.config import get_settings
    from wpbreach.patterns.yaml_loader import load_yaml_rules

    custom_dir = (settings or get_settings()).custom_rules_dir
    with _default_lock:
        registry = _registries.get(custom_dir)
        if registry is None:
            registry = PatternRegistry().load()
            if custom_dir:
                load_yaml_rules(custom_dir, registry)
            _registries[custom_dir] = registry
        return registry


def reset_registry() -> None:
    """Drop every shared registry (for testing)."""
    with _default_lock:
        _registries.clear()

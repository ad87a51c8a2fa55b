# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Load, validate, and register YAML-based custom detection rules.

A rule file holds a top-level ``rules:`` list::

    rules:
      - id: legacy_db_helper
        category: sql_injection
        subcategory: custom_helpers
        pattern: '(?i)legacy_db_query\\s*\\([^)]*\\$_GET'
        severity: high
        confidence: 0.8
        description: Legacy DB helper called with request data
        cwe_id: CWE-89
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from wpbreach.core.exceptions import ConfigurationError
from wpbreach.models.rule import PatternRule
from wpbreach.patterns.registry import PatternRegistry

logger = logging.getLogger("wpbreach.patterns.yaml_loader")


def load_yaml_rules(rules_dir: str | Path, registry: PatternRegistry) -> list[PatternRule]:
    """Discover, validate, and register YAML rules from *rules_dir*.

    Parameters
    ----------
    rules_dir:
        Path to a directory containing ``.yml`` / ``.yaml`` rule files.
    registry:
        Loaded registry the rules are added to.

    Returns
    -------
    list[PatternRule]
        The successfully registered rules, in file then declaration order.
    """
    rules_path = Path(rules_dir)

    if not rules_path.is_dir():
        logger.warning("Custom rules directory does not exist: %s", rules_path)
        return []

    yaml_files = sorted([*rules_path.glob("*.yml"), *rules_path.glob("*.yaml")])
    if not yaml_files:
        logger.info("No YAML rule files found in %s", rules_path)
        return []

    loaded: list[PatternRule] = []
    for filepath in yaml_files:
        loaded.extend(load_yaml_rule_file(filepath, registry))

    logger.info("Loaded %d custom YAML rules from %s", len(loaded), rules_path)
    return loaded


def load_yaml_rule_file(filepath: str | Path, registry: PatternRegistry) -> list[PatternRule]:
    """Parse one YAML file and register each valid rule it defines."""
    path = Path(filepath)
    try:
        raw_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Cannot read rule file %s: %s", path, exc)
        return []

    try:
        data = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        logger.warning("Invalid YAML syntax in %s: %s", path.name, exc)
        return []

    if not isinstance(data, dict) or not isinstance(data.get("rules"), list):
        logger.warning("Expected a top-level 'rules' list in %s", path.name)
        return []

    registered: list[PatternRule] = []
    for index, definition in enumerate(data["rules"]):
        if not isinstance(definition, dict):
            logger.warning("Skipping rule #%d in %s: expected a mapping", index, path.name)
            continue
        try:
            rule = registry.add_rule(definition, source="custom")
        except ConfigurationError as exc:
            logger.warning("Skipping rule #%d in %s: %s", index, path.name, exc)
            continue
        registered.append(rule)
        logger.debug("Registered YAML rule %s from %s", rule.key, path.name)

    return registered

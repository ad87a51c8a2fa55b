# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Built-in detector set."""

from __future__ import annotations

# Import all detector modules to trigger registration
import wpbreach.detectors.general
import wpbreach.detectors.sql_injection
import wpbreach.detectors.xss  # noqa: F401
from wpbreach.core.config import ConfidenceBoosts
from wpbreach.detectors.base import CategoryDetector, DetectorRegistry
from wpbreach.patterns.registry import PatternRegistry


def create_detectors(
    names: list[str],
    registry: PatternRegistry | None = None,
    boosts: ConfidenceBoosts | None = None,
) -> list[CategoryDetector]:
    """Instantiate the named built-in detectors."""
    return DetectorRegistry.create(names, registry=registry, boosts=boosts)


def supported_detectors() -> list[str]:
    return DetectorRegistry.names()

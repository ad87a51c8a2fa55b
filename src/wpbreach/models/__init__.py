# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Domain models for wpbreach."""

from wpbreach.models.analysis import (
    CodeSuggestion,
    DetailedAnalysis,
    OutputContext,
    SafePracticeObservation,
)
from wpbreach.models.finding import FileError, Finding
from wpbreach.models.fix import (
    FixBatchSummary,
    FixResult,
    FixStatus,
    SafetyAssessment,
    VulnerabilityRecord,
)
from wpbreach.models.rule import PatternRule, RuleDefinition
from wpbreach.models.scan import ScanProgress, ScanReport

__all__ = [
    "CodeSuggestion",
    "DetailedAnalysis",
    "FileError",
    "Finding",
    "FixBatchSummary",
    "FixResult",
    "FixStatus",
    "OutputContext",
    "PatternRule",
    "RuleDefinition",
    "SafePracticeObservation",
    "SafetyAssessment",
    "ScanProgress",
    "ScanReport",
    "VulnerabilityRecord",
]

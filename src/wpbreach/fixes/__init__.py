# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fix engine boundary: strategies, safety assessment and backups."""

from wpbreach.fixes.base import (
    AppliedFix,
    BackupStore,
    FixStrategy,
    InMemoryBackupStore,
    ValidationOutcome,
)
from wpbreach.fixes.engine import FixEngine
from wpbreach.fixes.guidance import ManualFixGuidance
from wpbreach.fixes.safety import SafetyAssessor
from wpbreach.fixes.strategies import SuggestionFixStrategy

__all__ = [
    "AppliedFix",
    "BackupStore",
    "FixEngine",
    "FixStrategy",
    "InMemoryBackupStore",
    "ManualFixGuidance",
    "SafetyAssessor",
    "SuggestionFixStrategy",
    "ValidationOutcome",
]

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Fix strategy interface and backup storage."""

from __future__ import annotations

import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, ClassVar, Protocol, runtime_checkable

from wpbreach.models.analysis import DetailedAnalysis
from wpbreach.models.fix import SafetyAssessment, VulnerabilityRecord


@dataclass
class AppliedFix:
    """What a strategy did (or planned) for one vulnerability."""

    success: bool
    fix_id: str | None = None
    actions_taken: list[str] = field(default_factory=list)
    changes_made: list[dict[str, str]] = field(default_factory=list)
    error: str | None = None


@dataclass
class ValidationOutcome:
    success: bool
    error: str | None = None


class FixStrategy(ABC):
    """Base class for fix strategies registered with the fix engine."""

    name: ClassVar[str]
    supported_types: ClassVar[frozenset[str]] = frozenset()

    @abstractmethod
    def can_auto_fix(self, record: VulnerabilityRecord) -> bool:
        """Whether this strategy can handle *record* without a human."""

    @abstractmethod
    def assess_fix_safety(self, record: VulnerabilityRecord) -> SafetyAssessment: ...

    @abstractmethod
    def apply_fix(self, record: VulnerabilityRecord, analysis: DetailedAnalysis | None) -> AppliedFix: ...

    @abstractmethod
    def validate_fix(self, record: VulnerabilityRecord, applied: AppliedFix) -> ValidationOutcome: ...

    @abstractmethod
    def rollback_fix(self, fix_id: str, backup: dict[str, Any]) -> bool: ...

    @abstractmethod
    def generate_manual_instructions(self, record: VulnerabilityRecord) -> list[str]: ...

    def supports_rollback(self, record: VulnerabilityRecord) -> bool:
        return True

    def info(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "supported_types": sorted(self.supported_types),
        }


@runtime_checkable
class BackupStore(Protocol):
    """Keeps the pre-fix state of a vulnerable location."""

    def create(self, record: VulnerabilityRecord) -> str:
        """Snapshot *record*'s location and return a backup id."""
        ...

    def get(self, backup_id: str) -> dict[str, Any] | None: ...


class InMemoryBackupStore:
    """Process-local backups holding the flagged snippet and its location."""

    def __init__(self) -> None:
        self._backups: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, record: VulnerabilityRecord) -> str:
        backup_id = f"bak-{uuid.uuid4().hex[:12]}"
        with self._lock:
            self._backups[backup_id] = {
                "vulnerability_id": record.id,
                "file": record.file,
                "line": record.line,
                "code": record.code,
            }
        return backup_id

    def get(self, backup_id: str) -> dict[str, Any] | None:
        with self._lock:
            backup = self._backups.get(backup_id)
            return dict(backup) if backup is not None else None

    def __len__(self) -> int:
        return len(self._backups)

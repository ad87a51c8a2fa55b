# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Mutable state of one scan session."""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from wpbreach.core.constants import ScanStatus
from wpbreach.models.finding import FileError, Finding
from wpbreach.models.scan import ScanProgress, ScanReport, utcnow


@dataclass
class ScanSession:
    """One run across a file set, owned by a single coordinator.

    Workers append through :meth:`record_file` / :meth:`record_error`,
    which hold the session lock so results and counters stay consistent.
    """

    active_categories: list[str]
    session_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    status: ScanStatus = ScanStatus.IDLE
    total_items: int = 0
    items_processed: int = 0
    current_item: str = ""
    findings: list[Finding] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)
    failure: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    files_failed: int = 0
    _started_monotonic: float | None = field(default=None, init=False, repr=False)
    _finished_monotonic: float | None = field(default=None, init=False, repr=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def mark_started(self, total_items: int) -> None:
        with self._lock:
            self.total_items = total_items
            self.status = ScanStatus.RUNNING
            self.started_at = utcnow()
            self._started_monotonic = time.monotonic()

    def mark_finished(self, status: ScanStatus, failure: str | None = None) -> None:
        with self._lock:
            self.status = status
            if failure is not None:
                self.failure = failure
            self.completed_at = utcnow()
            self._finished_monotonic = time.monotonic()

    def record_file(self, path: str, findings: list[Finding], errors: list[FileError] | None = None) -> int:
        """Add one scanned file's surviving findings and detector errors.

        Returns the session's findings total after the append.
        """
        with self._lock:
            self.findings.extend(findings)
            self.errors.extend(errors or ())
            self.items_processed += 1
            self.current_item = path
            return len(self.findings)

    def record_error(self, error: FileError) -> None:
        """Record a file that could not be scanned at all."""
        with self._lock:
            self.errors.append(error)
            self.items_processed += 1
            self.files_failed += 1
            self.current_item = error.file

    @property
    def elapsed_ms(self) -> int:
        if self._started_monotonic is None:
            return 0
        end = self._finished_monotonic or time.monotonic()
        return int((end - self._started_monotonic) * 1000)

    def progress(self) -> ScanProgress:
        with self._lock:
            processed = self.items_processed
            total = self.total_items
            percent = round(processed / total * 100, 2) if total else (100.0 if self.completed_at else 0.0)
            elapsed = self.elapsed_ms
            remaining = None
            if processed and total and processed < total:
                remaining = int(elapsed / processed * (total - processed))
            elif total and processed >= total:
                remaining = 0
            return ScanProgress(
                session_id=self.session_id,
                status=self.status,
                percent=percent,
                current_item=self.current_item,
                items_processed=processed,
                total_items=total,
                findings_count=len(self.findings),
                errors_count=len(self.errors),
                elapsed_ms=elapsed,
                estimated_remaining_ms=remaining,
            )

    def report(self) -> ScanReport:
        with self._lock:
            return ScanReport(
                session_id=self.session_id,
                status=self.status,
                findings=sorted(self.findings, key=lambda f: f.sort_key),
                errors=sorted(self.errors, key=lambda e: (e.file, e.error_type, e.detector or "")),
                files_scanned=self.items_processed - self.files_failed,
                files_total=self.total_items,
                active_categories=list(self.active_categories),
                started_at=self.started_at,
                completed_at=self.completed_at,
                duration_ms=self.elapsed_ms if self.started_at else None,
                failure=self.failure,
            )

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Scan coordinator: drives detectors over a file set with lifecycle control.

Lifecycle::

    idle -> running -> {paused <-> running} -> {completed | stopped | error}

Files are pulled from a queue by ``worker_count`` asyncio workers. Each
file's detectors run off the event loop in a thread, bounded by
``per_file_timeout``. Pause and stop take effect between files: a stopped
scan reports ``stopped`` at once but its results stay locked until the
in-flight files have drained.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from typing import Any

from wpbreach import __version__
from wpbreach.core.config import ScanConfig, Settings, get_settings
from wpbreach.core.constants import TERMINAL_STATUSES, ResultFormat, ScanStatus
from wpbreach.core.exceptions import (
    ConfigurationError,
    FileScanError,
    ResourceExhaustedError,
    ScanStateError,
    ScanTimeoutError,
)
from wpbreach.detectors.base import CategoryDetector
from wpbreach.detectors.builtin import create_detectors
from wpbreach.detectors.sql_injection import SqlPatternType
from wpbreach.detectors.xss import XssPatternType
from wpbreach.models.finding import FileError, Finding
from wpbreach.models.scan import ScanProgress, ScanReport
from wpbreach.patterns.registry import PatternRegistry, get_registry
from wpbreach.scanner.session import ScanSession
from wpbreach.scanner.sources import FileSource, FilesystemSource

logger = logging.getLogger("wpbreach.scanner.coordinator")

ProgressListener = Callable[[ScanProgress], Any]


class ScanCoordinator:
    """Runs one scan session at a time; instances share no state."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: PatternRegistry | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._registry = registry
        self._config: ScanConfig | None = None
        self._session: ScanSession | None = None
        self._source: FileSource | None = None
        self._detectors: list[CategoryDetector] = []
        self._listeners: list[ProgressListener] = []
        self._resume: asyncio.Event | None = None
        self._stop_requested = False
        self._active = False

    @property
    def registry(self) -> PatternRegistry:
        if self._registry is None:
            self._registry = get_registry(self._settings)
        return self._registry

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def initialize(
        self,
        config: dict[str, Any] | ScanConfig,
        source: FileSource | None = None,
    ) -> bool:
        """Validate *config* and prepare a fresh idle session.

        Raises :class:`ConfigurationError` for missing or out-of-range
        options and :class:`ScanStateError` while a scan is in progress.
        """
        if self._active or self.get_status() in (ScanStatus.RUNNING, ScanStatus.PAUSED):
            raise ScanStateError(f"cannot initialize while scan is {self.get_status()}")

        scan_config = ScanConfig.from_options(config, self._settings)
        self._detectors = create_detectors(
            scan_config.active_categories,
            registry=self.registry,
            boosts=self._settings.confidence_boosts(),
        )
        self._source = source or FilesystemSource(
            scan_config.target_paths,
            extensions=scan_config.file_extensions,
            exclude_dirs=scan_config.exclude_dirs,
            max_file_size=scan_config.max_file_size,
        )
        self._config = scan_config
        self._session = ScanSession(active_categories=list(scan_config.active_categories))
        self._stop_requested = False
        logger.info(
            "Initialized session %s: detectors=%s targets=%d workers=%d",
            self._session.session_id,
            ",".join(scan_config.active_categories),
            len(scan_config.target_paths),
            scan_config.worker_count,
        )
        return True

    async def start_scan(self, options: dict[str, Any] | ScanConfig | None = None) -> bool:
        """Run the session to a terminal state.

        Returns False without side effects when a scan is already running
        or the session has already finished; returns True once the session
        completes or is stopped, False when it ends in error.
        """
        status = self.get_status()
        if self._active or status in (ScanStatus.RUNNING, ScanStatus.PAUSED):
            logger.warning("start_scan ignored: scan already %s", status)
            return False

        if options is not None:
            self.initialize(options)

        if self._config is None or self._session is None or self._source is None:
            raise ConfigurationError("scan coordinator is not initialized")
        if self._session.status is not ScanStatus.IDLE:
            logger.warning("start_scan ignored: session %s already %s", self._session.session_id, status)
            return False

        session = self._session
        self._stop_requested = False
        # Bound to the running loop, so each run gets its own
        self._resume = asyncio.Event()
        self._resume.set()
        self._active = True
        try:
            await self._run(session, self._config, self._source)
        finally:
            self._active = False

        if session.status is ScanStatus.ERROR:
            logger.error("Scan %s failed: %s", session.session_id, session.failure)
        else:
            logger.info(
                "Scan %s %s: files=%d findings=%d errors=%d duration=%dms",
                session.session_id,
                session.status,
                session.items_processed,
                len(session.findings),
                len(session.errors),
                session.elapsed_ms,
            )
        self._notify()
        return session.status is not ScanStatus.ERROR

    async def _run(self, session: ScanSession, config: ScanConfig, source: FileSource) -> None:
        try:
            files = await asyncio.to_thread(source.list_files)
        except Exception as exc:
            logger.exception("Failed to enumerate target files")
            session.mark_finished(ScanStatus.ERROR, failure=f"cannot enumerate target files: {exc}")
            return

        session.mark_started(len(files))
        logger.info("Scan %s started: %d files", session.session_id, len(files))
        self._notify()

        queue: asyncio.Queue[str] = asyncio.Queue()
        for path in files:
            queue.put_nowait(path)

        workers = [asyncio.create_task(self._worker(queue, config)) for _ in range(config.worker_count)]
        try:
            await asyncio.wait_for(asyncio.gather(*workers), timeout=config.max_scan_time)
        except TimeoutError:
            session.mark_finished(
                ScanStatus.ERROR,
                failure=f"scan exceeded max_scan_time of {config.max_scan_time}s",
            )
        except ResourceExhaustedError as exc:
            session.mark_finished(ScanStatus.ERROR, failure=str(exc))
        except Exception as exc:
            logger.exception("Scan %s aborted", session.session_id)
            session.mark_finished(ScanStatus.ERROR, failure=f"unexpected error: {exc}")
        else:
            final = ScanStatus.STOPPED if self._stop_requested else ScanStatus.COMPLETED
            session.mark_finished(final)
        finally:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)

    def pause_scan(self) -> bool:
        if self.get_status() is not ScanStatus.RUNNING or self._session is None or self._resume is None:
            return False
        self._resume.clear()
        self._session.status = ScanStatus.PAUSED
        logger.info("Scan %s paused", self._session.session_id)
        return True

    def resume_scan(self) -> bool:
        if self.get_status() is not ScanStatus.PAUSED or self._session is None or self._resume is None:
            return False
        self._session.status = ScanStatus.RUNNING
        self._resume.set()
        logger.info("Scan %s resumed", self._session.session_id)
        return True

    def stop_scan(self) -> bool:
        if self.get_status() not in (ScanStatus.RUNNING, ScanStatus.PAUSED) or self._session is None:
            return False
        self._stop_requested = True
        self._session.status = ScanStatus.STOPPED
        # Wake paused workers so they can observe the stop
        if self._resume is not None:
            self._resume.set()
        logger.info("Scan %s stop requested", self._session.session_id)
        return True

    def cleanup(self) -> bool:
        """Release the session and its buffers.

        Refused while a scan is active, including a stopped scan whose
        workers are still finishing their current file.
        """
        status = self.get_status()
        if self._active or status in (ScanStatus.RUNNING, ScanStatus.PAUSED):
            return False
        self._session = None
        self._source = None
        self._config = None
        self._detectors = []
        self._stop_requested = False
        self._resume = None
        return True

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_status(self) -> ScanStatus:
        return self._session.status if self._session is not None else ScanStatus.IDLE

    def get_progress(self) -> ScanProgress:
        if self._session is None:
            return ScanProgress()
        return self._session.progress()

    def get_results(self, format: ResultFormat | str = ResultFormat.MODEL) -> ScanReport | dict[str, Any] | str:
        """Sorted findings and per-file errors of a finished session."""
        status = self.get_status()
        if self._session is None or status not in TERMINAL_STATUSES:
            raise ScanStateError(f"results are not available while scan is {status}")
        if self._active:
            raise ScanStateError("results are not available until in-flight files have drained")

        report = self._session.report()
        fmt = ResultFormat(format)
        if fmt is ResultFormat.DICT:
            return report.model_dump(mode="json")
        if fmt is ResultFormat.JSON:
            return report.model_dump_json(indent=2)
        return report

    def get_config(self) -> dict[str, Any] | None:
        return self._config.model_dump() if self._config is not None else None

    def get_supported_vulnerabilities(self) -> dict[str, list[str]]:
        return {
            "sql_injection": [t.value for t in SqlPatternType],
            "xss": [t.value for t in XssPatternType],
            "general": self.registry.categories(),
        }

    def get_metadata(self) -> dict[str, Any]:
        return {
            "name": "wpbreach",
            "version": __version__,
            "detectors": [d.name for d in self._detectors],
            "session_id": self._session.session_id if self._session else None,
            "status": str(self.get_status()),
            "rules_loaded": len(self.registry),
        }

    def add_listener(self, callback: ProgressListener) -> None:
        """Call *callback* with a progress snapshot after every file."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    async def _worker(self, queue: asyncio.Queue[str], config: ScanConfig) -> None:
        assert self._resume is not None
        while True:
            await self._resume.wait()
            if self._stop_requested:
                return
            try:
                path = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            await self._scan_file(path, config)
            self._notify()

    async def _scan_file(self, path: str, config: ScanConfig) -> None:
        session = self._session
        source = self._source
        assert session is not None and source is not None

        try:
            content = await asyncio.to_thread(source.read, path)
        except FileScanError as exc:
            logger.warning("Skipping %s: %s", path, exc.message, extra=self._log_context(path))
            session.record_error(FileError(file=path, error_type=exc.error_type, message=exc.message))
            return
        except Exception as exc:
            logger.warning("Skipping %s: %s", path, exc, extra=self._log_context(path))
            session.record_error(FileError(file=path, error_type="read_error", message=str(exc)))
            return

        deadline = time.monotonic() + config.per_file_timeout
        try:
            findings, errors = await asyncio.wait_for(
                asyncio.to_thread(self._run_detectors, path, content, deadline),
                timeout=config.per_file_timeout,
            )
        except (TimeoutError, ScanTimeoutError):
            message = f"scan exceeded per-file timeout of {config.per_file_timeout}s"
            logger.warning("Timed out scanning %s", path, extra=self._log_context(path))
            session.record_error(FileError(file=path, error_type=ScanTimeoutError.error_type, message=message))
            return

        total = session.record_file(path, findings, errors)
        if config.max_findings is not None and total > config.max_findings:
            raise ResourceExhaustedError(f"finding limit of {config.max_findings} exceeded ({total} findings)")

    def _run_detectors(self, path: str, content: str, deadline: float) -> tuple[list[Finding], list[FileError]]:
        findings: list[Finding] = []
        errors: list[FileError] = []
        for detector in self._detectors:
            try:
                findings.extend(detector.scan(content, path, deadline=deadline))
            except ScanTimeoutError:
                raise
            except Exception as exc:
                logger.error(
                    "Detector %s failed on %s: %s",
                    detector.name,
                    path,
                    exc,
                    extra=self._log_context(path, detector=detector.name),
                )
                errors.append(
                    FileError(file=path, error_type="detector_error", message=str(exc), detector=detector.name)
                )
        return findings, errors

    def _log_context(self, path: str, **extra: str) -> dict[str, str]:
        session_id = self._session.session_id if self._session is not None else ""
        return {"session_id": session_id, "file_path": path, **extra}

    def _notify(self) -> None:
        if not self._listeners or self._session is None:
            return
        snapshot = self._session.progress()
        for listener in self._listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Progress listener failed")

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""End-to-end tests for the scan coordinator lifecycle."""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import pytest

from wpbreach.core.config import Settings
from wpbreach.core.constants import ResultFormat, ScanStatus
from wpbreach.core.exceptions import ConfigurationError, ScanStateError
from wpbreach.detectors.xss import XssDetector
from wpbreach.models.scan import ScanReport
from wpbreach.scanner.coordinator import ScanCoordinator
from wpbreach.scanner.sources import InMemorySource

REFLECTED = "<?php echo $_GET['name'];\n"


def _make_plugin(root: Path, count: int, bad_index: int | None = None) -> Path:
    """Write *count* one-line reflected-output files; *bad_index* gets invalid UTF-8."""
    root.mkdir(parents=True, exist_ok=True)
    for i in range(count):
        path = root / f"file_{i:03d}.php"
        if i == bad_index:
            path.write_bytes(b"<?php echo '\xff\xfe';\n")
        else:
            path.write_text(REFLECTED)
    return root


def _options(target: Path, **extra) -> dict:
    return {"active_categories": ["xss"], "target_paths": [str(target)], **extra}


async def _wait_for_status(coordinator: ScanCoordinator, status: ScanStatus, timeout: float = 5.0) -> None:
    deadline = time.monotonic() + timeout
    while coordinator.get_status() != status:
        if time.monotonic() > deadline:
            raise AssertionError(f"status stayed {coordinator.get_status()}, expected {status}")
        await asyncio.sleep(0.01)


def _locations(report: ScanReport) -> list[tuple[str, int, str]]:
    return [(Path(f.file).name, f.line, f.subtype) for f in report.findings]


# ---------------------------------------------------------------------------
# Full runs
# ---------------------------------------------------------------------------

class TestFullScan:

    async def test_hundred_files_with_one_undecodable(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 100, bad_index=42)
        coordinator = ScanCoordinator()
        assert coordinator.initialize(_options(plugin)) is True

        assert await coordinator.start_scan() is True
        assert coordinator.get_status() == ScanStatus.COMPLETED

        report = coordinator.get_results()
        assert len(report.findings) == 99
        assert report.files_total == 100
        assert report.files_scanned == 99
        assert len(report.errors) == 1
        error = report.errors[0]
        assert Path(error.file).name == "file_042.php"
        assert error.error_type == "encoding_error"
        assert coordinator.get_progress().percent == 100.0

    async def test_results_are_sorted(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 12)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=4))
        await coordinator.start_scan()

        names = [name for name, _, _ in _locations(coordinator.get_results())]
        assert names == sorted(names)

    async def test_deterministic_across_runs(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 20)
        runs = []
        for workers in (1, 8):
            coordinator = ScanCoordinator()
            coordinator.initialize(_options(plugin, worker_count=workers))
            await coordinator.start_scan()
            runs.append(_locations(coordinator.get_results()))
        assert runs[0] == runs[1]

    async def test_independent_coordinators_run_concurrently(self, tmp_path):
        first = _make_plugin(tmp_path / "first", 3)
        second = _make_plugin(tmp_path / "second", 5)
        a, b = ScanCoordinator(), ScanCoordinator()
        a.initialize(_options(first))
        b.initialize(_options(second))

        assert await asyncio.gather(a.start_scan(), b.start_scan()) == [True, True]
        assert len(a.get_results().findings) == 3
        assert len(b.get_results().findings) == 5
        assert a.get_results().session_id != b.get_results().session_id

    async def test_in_memory_source(self):
        coordinator = ScanCoordinator()
        coordinator.initialize(
            {"active_categories": ["xss", "sql_injection"], "target_paths": ["greeting.php"]},
            source=InMemorySource({"greeting.php": REFLECTED}),
        )
        await coordinator.start_scan()
        assert _locations(coordinator.get_results()) == [("greeting.php", 1, "direct_output")]


# ---------------------------------------------------------------------------
# Pause / resume / stop
# ---------------------------------------------------------------------------

class TestLifecycleControl:

    async def test_pause_and_resume(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 30)

        baseline = ScanCoordinator()
        baseline.initialize(_options(plugin, worker_count=1))
        await baseline.start_scan()

        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=1))

        def pause_at_ten(progress):
            if progress.items_processed == 10 and progress.status == ScanStatus.RUNNING:
                coordinator.pause_scan()

        coordinator.add_listener(pause_at_ten)
        task = asyncio.create_task(coordinator.start_scan())

        await _wait_for_status(coordinator, ScanStatus.PAUSED)
        await asyncio.sleep(0.05)
        assert coordinator.get_progress().items_processed == 10
        assert coordinator.pause_scan() is False

        with pytest.raises(ScanStateError):
            coordinator.initialize(_options(plugin))
        assert coordinator.cleanup() is False
        with pytest.raises(ScanStateError):
            coordinator.get_results()
        assert await coordinator.start_scan() is False

        assert coordinator.resume_scan() is True
        assert await task is True
        assert coordinator.get_status() == ScanStatus.COMPLETED
        assert _locations(coordinator.get_results()) == _locations(baseline.get_results())

    async def test_stop(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 20)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=1))

        def stop_at_five(progress):
            if progress.items_processed == 5:
                coordinator.stop_scan()

        coordinator.add_listener(stop_at_five)
        assert await coordinator.start_scan() is True
        assert coordinator.get_status() == ScanStatus.STOPPED

        report = coordinator.get_results()
        assert report.status == ScanStatus.STOPPED
        assert report.files_scanned == 5
        assert len(report.findings) == 5

    async def test_stop_while_paused(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 10)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=1))

        def pause_at_two(progress):
            if progress.items_processed == 2 and progress.status == ScanStatus.RUNNING:
                coordinator.pause_scan()

        coordinator.add_listener(pause_at_two)
        task = asyncio.create_task(coordinator.start_scan())
        await _wait_for_status(coordinator, ScanStatus.PAUSED)

        assert coordinator.stop_scan() is True
        assert await task is True
        assert coordinator.get_results().files_scanned == 2

    async def test_results_locked_until_workers_drain(self, tmp_path, monkeypatch):
        plugin = _make_plugin(tmp_path / "plugin", 8)
        detect = XssDetector.detect

        def slow_detect(self, content, file_path, *, deadline=None):
            time.sleep(0.3)
            return detect(self, content, file_path, deadline=deadline)

        monkeypatch.setattr(XssDetector, "detect", slow_detect)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=2))
        task = asyncio.create_task(coordinator.start_scan())
        await _wait_for_status(coordinator, ScanStatus.RUNNING)
        await asyncio.sleep(0.1)

        assert coordinator.stop_scan() is True
        assert coordinator.get_status() == ScanStatus.STOPPED
        with pytest.raises(ScanStateError, match="drained"):
            coordinator.get_results()
        assert coordinator.cleanup() is False
        with pytest.raises(ScanStateError):
            coordinator.initialize(_options(plugin))
        assert await coordinator.start_scan() is False

        assert await task is True
        report = coordinator.get_results()
        assert report.status == ScanStatus.STOPPED
        assert report.files_scanned == 2
        assert len(report.findings) == 2
        assert _locations(coordinator.get_results()) == _locations(report)
        assert coordinator.cleanup() is True

    def test_reusable_across_event_loops(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 4)
        coordinator = ScanCoordinator()

        def pause_at_two(progress):
            if progress.items_processed == 2 and progress.status == ScanStatus.RUNNING:
                coordinator.pause_scan()

        coordinator.add_listener(pause_at_two)

        async def paused_run() -> bool:
            task = asyncio.create_task(coordinator.start_scan())
            await _wait_for_status(coordinator, ScanStatus.PAUSED)
            assert coordinator.resume_scan() is True
            return await task

        for _ in range(2):
            coordinator.initialize(_options(plugin, worker_count=1))
            assert asyncio.run(paused_run()) is True
            assert coordinator.get_results().files_scanned == 4

    async def test_controls_refused_when_idle(self):
        coordinator = ScanCoordinator()
        assert coordinator.pause_scan() is False
        assert coordinator.resume_scan() is False
        assert coordinator.stop_scan() is False
        assert coordinator.get_status() == ScanStatus.IDLE

    async def test_finished_session_not_restarted(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 2)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin))
        assert await coordinator.start_scan() is True
        assert await coordinator.start_scan() is False

        assert coordinator.cleanup() is True
        assert coordinator.get_status() == ScanStatus.IDLE
        assert coordinator.get_config() is None

    async def test_failing_listener_does_not_abort(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 3)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin))

        def broken(progress):
            raise RuntimeError("listener bug")

        coordinator.add_listener(broken)
        assert await coordinator.start_scan() is True
        assert len(coordinator.get_results().findings) == 3


# ---------------------------------------------------------------------------
# Per-file failures and session limits
# ---------------------------------------------------------------------------

class TestFailures:

    async def test_runaway_pattern_times_out_only_its_file(self, tmp_path, registry):
        plugin = tmp_path / "plugin"
        plugin.mkdir()
        (plugin / "evil.php").write_text("<?php $q = '" + "SELECT WHERE " * 3000 + ";\n")
        (plugin / "ok.php").write_text(REFLECTED)
        registry.add_rule(
            {
                "id": "stacked_where",
                "category": "code_injection",
                "pattern": r"SELECT[^'\"]*WHERE[^'\"]*WHERE[^'\"]*'\$_GET",
                "severity": "high",
                "description": "Query fragment built from request data",
            }
        )
        coordinator = ScanCoordinator(registry=registry)
        coordinator.initialize(
            {
                "active_categories": ["general", "xss"],
                "target_paths": [str(plugin)],
                "per_file_timeout": 0.5,
                "worker_count": 2,
            }
        )

        start = time.monotonic()
        assert await coordinator.start_scan() is True
        assert time.monotonic() - start < 5.0

        report = coordinator.get_results()
        assert report.status == ScanStatus.COMPLETED
        assert [(Path(e.file).name, e.error_type) for e in report.errors] == [("evil.php", "timeout")]
        assert report.files_scanned == 1
        assert ("ok.php", 1, "direct_output") in _locations(report)

    async def test_slow_detector_hits_per_file_timeout(self, tmp_path, monkeypatch):
        plugin = _make_plugin(tmp_path / "plugin", 1)

        def slow_detect(self, content, file_path, *, deadline=None):
            time.sleep(0.3)
            return []

        monkeypatch.setattr(XssDetector, "detect", slow_detect)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, per_file_timeout=0.05))

        assert await coordinator.start_scan() is True
        report = coordinator.get_results()
        assert [e.error_type for e in report.errors] == ["timeout"]
        assert "per-file timeout" in report.errors[0].message
        assert report.files_scanned == 0

    async def test_detector_crash_is_isolated(self, tmp_path, monkeypatch):
        plugin = _make_plugin(tmp_path / "plugin", 2)

        def broken_detect(self, content, file_path, *, deadline=None):
            raise RuntimeError("regex engine exploded")

        monkeypatch.setattr(XssDetector, "detect", broken_detect)
        coordinator = ScanCoordinator()
        coordinator.initialize(
            {"active_categories": ["xss", "general"], "target_paths": [str(plugin)]}
        )

        assert await coordinator.start_scan() is True
        report = coordinator.get_results()
        assert report.files_scanned == 2
        assert [(e.error_type, e.detector) for e in report.errors] == [("detector_error", "xss")] * 2
        assert report.errors[0].message == "regex engine exploded"

    async def test_finding_limit(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 10)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=1, max_findings=3))

        assert await coordinator.start_scan() is False
        assert coordinator.get_status() == ScanStatus.ERROR

        report = coordinator.get_results()
        assert len(report.findings) == 4
        assert "finding limit of 3 exceeded" in report.failure

    async def test_scan_time_limit(self, tmp_path, monkeypatch):
        plugin = _make_plugin(tmp_path / "plugin", 5)

        def slow_detect(self, content, file_path, *, deadline=None):
            time.sleep(0.1)
            return []

        monkeypatch.setattr(XssDetector, "detect", slow_detect)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin, worker_count=1, max_scan_time=0.15))

        assert await coordinator.start_scan() is False
        report = coordinator.get_results()
        assert report.status == ScanStatus.ERROR
        assert "max_scan_time" in report.failure
        assert report.files_scanned < 5


# ---------------------------------------------------------------------------
# Configuration and introspection
# ---------------------------------------------------------------------------

class TestConfigurationAndIntrospection:

    async def test_custom_rules_follow_coordinator_settings(self, tmp_path, rules_dir):
        plugin = tmp_path / "plugin"
        plugin.mkdir()
        (plugin / "legacy.php").write_text("<?php\nlegacy_db_query('SELECT 1 WHERE id=' . $_GET['id']);\n")
        custom_key = "sql_injection/custom_helpers/legacy_db_helper"

        coordinator = ScanCoordinator(settings=Settings(_env_file=None, custom_rules_dir=str(rules_dir)))
        assert custom_key in coordinator.registry
        assert custom_key not in ScanCoordinator(settings=Settings(_env_file=None)).registry

        coordinator.initialize({"active_categories": ["general"], "target_paths": [str(plugin)]})
        assert await coordinator.start_scan() is True
        assert custom_key in {f.rule_id for f in coordinator.get_results().findings}

    async def test_start_without_initialize(self):
        with pytest.raises(ConfigurationError, match="not initialized"):
            await ScanCoordinator().start_scan()

    async def test_start_with_inline_options(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 2)
        coordinator = ScanCoordinator()
        assert await coordinator.start_scan(_options(plugin)) is True
        assert len(coordinator.get_results().findings) == 2

    def test_initialize_rejects_bad_options(self):
        coordinator = ScanCoordinator()
        with pytest.raises(ConfigurationError, match="unknown detector categories"):
            coordinator.initialize({"active_categories": ["csrf"], "target_paths": ["a.php"]})
        assert coordinator.get_status() == ScanStatus.IDLE

    def test_results_unavailable_before_finish(self, tmp_path):
        coordinator = ScanCoordinator()
        with pytest.raises(ScanStateError):
            coordinator.get_results()
        coordinator.initialize(_options(tmp_path))
        with pytest.raises(ScanStateError):
            coordinator.get_results()

    async def test_result_formats(self, tmp_path):
        plugin = _make_plugin(tmp_path / "plugin", 1)
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(plugin))
        await coordinator.start_scan()

        as_dict = coordinator.get_results(ResultFormat.DICT)
        assert as_dict["status"] == "completed"
        assert as_dict["overall_severity"] == "high"

        as_json = coordinator.get_results("json")
        assert json.loads(as_json)["session_id"] == as_dict["session_id"]

    async def test_empty_target(self, tmp_path):
        coordinator = ScanCoordinator()
        coordinator.initialize(_options(tmp_path))
        assert await coordinator.start_scan() is True
        report = coordinator.get_results()
        assert report.files_total == 0
        assert report.findings == []

    def test_supported_vulnerabilities(self):
        supported = ScanCoordinator().get_supported_vulnerabilities()
        assert set(supported) == {"sql_injection", "xss", "general"}
        assert "direct_input" in supported["sql_injection"]
        assert "direct_output" in supported["xss"]
        assert "code_injection" in supported["general"]

    def test_metadata(self, tmp_path):
        coordinator = ScanCoordinator()
        coordinator.initialize(
            {"active_categories": ["sql_injection", "xss"], "target_paths": [str(tmp_path)]}
        )
        metadata = coordinator.get_metadata()
        assert metadata["name"] == "wpbreach"
        assert metadata["detectors"] == ["sql_injection", "xss"]
        assert metadata["status"] == "idle"
        assert metadata["rules_loaded"] > 0
        assert coordinator.get_config()["worker_count"] == 4

# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Public SDK interface for embedding wpbreach in other tools.

Usage::

    from wpbreach import scan_paths_sync, scan_sync

    report = scan_paths_sync(["wp-content/plugins/my-plugin"])
    print(report.overall_severity, report.risk_score)

    report = scan_sync(php_source, file_name="widget.php")
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from wpbreach.core.config import Settings, get_settings
from wpbreach.models.scan import ScanReport
from wpbreach.scanner.coordinator import ScanCoordinator
from wpbreach.scanner.sources import InMemorySource


def _options(
    settings: Settings,
    targets: Sequence[str],
    categories: Sequence[str] | None,
    extra: dict[str, Any],
) -> dict[str, Any]:
    return {
        "active_categories": list(categories) if categories else list(settings.active_categories),
        "target_paths": list(targets),
        **extra,
    }


async def scan_paths(
    targets: Sequence[str | Path],
    *,
    categories: Sequence[str] | None = None,
    settings: Settings | None = None,
    **options: Any,
) -> ScanReport:
    """Scan files and directories on disk.

    Parameters
    ----------
    targets:
        Files or directories to scan.
    categories:
        Detector names to run; defaults to ``Settings.active_categories``.
    settings:
        Optional ``Settings`` override; falls back to ``get_settings()``.
    options:
        Further :class:`~wpbreach.core.config.ScanConfig` fields such as
        ``worker_count`` or ``per_file_timeout``.
    """
    settings = settings or get_settings()
    coordinator = ScanCoordinator(settings=settings)
    coordinator.initialize(_options(settings, [str(t) for t in targets], categories, options))
    await coordinator.start_scan()
    report = coordinator.get_results()
    coordinator.cleanup()
    return report


async def scan(
    content: str,
    *,
    file_name: str = "input.php",
    categories: Sequence[str] | None = None,
    settings: Settings | None = None,
    **options: Any,
) -> ScanReport:
    """Scan raw PHP source held in memory; *file_name* labels the findings."""
    settings = settings or get_settings()
    coordinator = ScanCoordinator(settings=settings)
    coordinator.initialize(
        _options(settings, [file_name], categories, options),
        source=InMemorySource({file_name: content}),
    )
    await coordinator.start_scan()
    report = coordinator.get_results()
    coordinator.cleanup()
    return report


def scan_sync(
    content: str,
    *,
    file_name: str = "input.php",
    categories: Sequence[str] | None = None,
    settings: Settings | None = None,
    **options: Any,
) -> ScanReport:
    """Synchronous wrapper around :func:`scan`.

    Calls ``asyncio.run()`` internally, so it must **not** be called from
    within an already-running event loop.
    """
    return asyncio.run(scan(content, file_name=file_name, categories=categories, settings=settings, **options))


def scan_paths_sync(
    targets: Sequence[str | Path],
    *,
    categories: Sequence[str] | None = None,
    settings: Settings | None = None,
    **options: Any,
) -> ScanReport:
    """Synchronous wrapper around :func:`scan_paths`."""
    return asyncio.run(scan_paths(targets, categories=categories, settings=settings, **options))

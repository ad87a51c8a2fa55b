# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""wpbreach - Static vulnerability scanner for WordPress PHP code."""

__version__ = "0.1.0"

from wpbreach.sdk import scan, scan_paths, scan_paths_sync, scan_sync

__all__ = [
    "__version__",
    "scan",
    "scan_paths",
    "scan_paths_sync",
    "scan_sync",
]

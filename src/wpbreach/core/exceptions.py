# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Custom exception hierarchy for wpbreach."""


class WpBreachError(Exception):
    """Base exception for all wpbreach errors."""


class ConfigurationError(WpBreachError):
    """Invalid or missing configuration."""


class PatternCompileError(WpBreachError):
    """A detection rule's regular expression failed to compile."""

    def __init__(self, rule_key: str, message: str) -> None:
        super().__init__(f"{rule_key}: {message}")
        self.rule_key = rule_key


class DetectorError(WpBreachError):
    """Error within a category detector."""


class ScanError(WpBreachError):
    """Error during scan execution."""


class ScanStateError(ScanError):
    """Operation not allowed in the current scan status."""


class FileScanError(ScanError):
    """A single file could not be scanned. Recoverable."""

    error_type = "file_error"

    def __init__(self, file_path: str, message: str) -> None:
        super().__init__(f"{file_path}: {message}")
        self.file_path = file_path
        self.message = message


class ScanTimeoutError(FileScanError):
    """Per-file matching budget exceeded."""

    error_type = "timeout"


class ResourceExhaustedError(ScanError):
    """Session-wide limit breached; the session cannot continue."""


class FixError(WpBreachError):
    """Fix strategy failed to apply, validate, or roll back."""

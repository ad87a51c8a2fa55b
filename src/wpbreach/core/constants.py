# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Enumerations, severity weights, and scan lifecycle constants."""

from enum import StrEnum


class Severity(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ScanStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    COMPLETED = "completed"
    ERROR = "error"


class DetectorName(StrEnum):
    SQL_INJECTION = "sql_injection"
    XSS = "xss"
    GENERAL = "general"


class ResultFormat(StrEnum):
    MODEL = "model"
    DICT = "dict"
    JSON = "json"


TERMINAL_STATUSES: frozenset[ScanStatus] = frozenset(
    {ScanStatus.COMPLETED, ScanStatus.STOPPED, ScanStatus.ERROR}
)

SEVERITY_WEIGHTS: dict[Severity, int] = {
    Severity.CRITICAL: 100,
    Severity.HIGH: 75,
    Severity.MEDIUM: 50,
    Severity.LOW: 25,
}

SEVERITY_ORDER: list[Severity] = [
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
]

# Superglobals treated as attacker-controlled input
USER_INPUT_MARKERS: tuple[str, ...] = ("$_GET", "$_POST", "$_REQUEST", "$_COOKIE")

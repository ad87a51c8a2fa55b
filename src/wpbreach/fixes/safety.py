# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Risk scoring for automated fixes."""

from __future__ import annotations

import posixpath

from wpbreach.core.constants import Severity
from wpbreach.models.fix import SafetyAssessment, VulnerabilityRecord

SEVERITY_RISK: dict[Severity, float] = {
    Severity.CRITICAL: 0.8,
    Severity.HIGH: 0.6,
    Severity.MEDIUM: 0.4,
    Severity.LOW: 0.2,
}

FILE_RISK_CORE = 0.9
FILE_RISK_CONFIGURATION = 0.8
FILE_RISK_OTHER = 0.3

CORE_DIRECTORIES = ("wp-includes/", "wp-admin/")
CONFIGURATION_FILES = frozenset({"wp-config.php", ".htaccess"})

TYPE_RISK: dict[str, float] = {
    "sql_injection": 0.5,
    "code_injection": 0.5,
    "xss": 0.4,
    "command_injection": 0.6,
    "deserialization": 0.6,
    "file_upload": 0.6,
    "wordpress_core_bypass": 0.7,
}
DEFAULT_TYPE_RISK = 0.4

WEIGHTS: dict[str, float] = {
    "severity": 0.3,
    "confidence": 0.25,
    "file": 0.25,
    "type": 0.2,
}


class SafetyAssessor:
    """Weighs severity, detector confidence, file criticality and type.

    Risk is a weighted mean in [0, 1]. Anything touching WordPress core or
    site configuration is never considered safe to fix automatically.
    """

    def __init__(self, threshold: float = 0.7) -> None:
        self.threshold = threshold

    @staticmethod
    def file_risk(path: str) -> tuple[float, str]:
        normalized = path.replace("\\", "/")
        if any(f"/{d}" in f"/{normalized}" for d in CORE_DIRECTORIES):
            return FILE_RISK_CORE, "core_files"
        if posixpath.basename(normalized) in CONFIGURATION_FILES:
            return FILE_RISK_CONFIGURATION, "configuration"
        return FILE_RISK_OTHER, "other"

    def assess(self, record: VulnerabilityRecord) -> SafetyAssessment:
        factors: list[str] = []

        severity_risk = SEVERITY_RISK.get(record.severity, SEVERITY_RISK[Severity.MEDIUM])
        if record.severity in (Severity.CRITICAL, Severity.HIGH):
            factors.append(f"{record.severity} severity vulnerability")

        confidence_risk = 1.0 - record.confidence
        if record.confidence < 0.5:
            factors.append(f"low detector confidence ({record.confidence:.2f})")

        file_risk, file_kind = self.file_risk(record.file)
        critical_file = file_kind != "other"
        if file_kind == "core_files":
            factors.append("WordPress core files affected")
        elif file_kind == "configuration":
            factors.append("site configuration file affected")

        type_risk = TYPE_RISK.get(record.vulnerability_type, DEFAULT_TYPE_RISK)
        if type_risk >= 0.5:
            factors.append(f"code changes for {record.vulnerability_type} can alter behaviour")

        risk = (
            severity_risk * WEIGHTS["severity"]
            + confidence_risk * WEIGHTS["confidence"]
            + file_risk * WEIGHTS["file"]
            + type_risk * WEIGHTS["type"]
        ) / sum(WEIGHTS.values())
        risk = round(min(1.0, max(0.0, risk)), 4)

        return SafetyAssessment(
            risk_level=risk,
            factors=factors,
            safe_to_auto_fix=risk <= self.threshold and not critical_file,
        )

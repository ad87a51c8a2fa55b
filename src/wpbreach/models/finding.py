# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Vulnerability finding models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from wpbreach.core.constants import Severity


class Finding(BaseModel):
    """A single detected match.

    Rule attributes are copied in at match time, so later registry
    changes never alter a finding that was already reported.
    """

    model_config = ConfigDict(frozen=True)

    vulnerability_type: str = Field(description="Top-level category, e.g. sql_injection")
    subtype: str = Field(description="Pattern type or subcategory that matched")
    severity: Severity
    confidence: float = Field(ge=0.0, le=1.0)
    line: int = Field(ge=1)
    column: int = Field(default=1, ge=1)
    code: str
    file: str
    description: str = ""
    recommendation: str = ""
    detector: str = ""
    rule_id: str | None = None
    cwe_id: str | None = None
    references: tuple[str, ...] = ()
    context: str | None = None

    @property
    def sort_key(self) -> tuple[str, int, int, str, str, str]:
        return (self.file, self.line, self.column, self.vulnerability_type, self.subtype, self.code)


class FileError(BaseModel):
    """A recoverable failure scanning one file."""

    model_config = ConfigDict(frozen=True)

    file: str
    error_type: str
    message: str
    detector: str | None = None

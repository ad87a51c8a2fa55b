# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Detection rule models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from regex import Pattern

from wpbreach.core.constants import Severity


class PatternRule(BaseModel):
    """One named, immutable detection signature."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    id: str
    category: str
    subcategory: str
    regex: Pattern
    severity: Severity
    confidence: float = Field(ge=0.0, le=1.0)
    description: str
    cwe_id: str | None = None
    references: tuple[str, ...] = ()
    recommendation: str = ""
    source: str = "builtin"

    @property
    def key(self) -> str:
        return f"{self.category}/{self.subcategory}/{self.id}"

    @property
    def pattern(self) -> str:
        return self.regex.pattern


class RuleDefinition(BaseModel):
    """Uncompiled rule as written in a table or a custom YAML file."""

    model_config = ConfigDict(extra="ignore")

    id: str
    category: str
    subcategory: str = ""
    pattern: str
    severity: Severity = Severity.MEDIUM
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    description: str = ""
    cwe_id: str | None = None
    references: list[str] = Field(default_factory=list)
    recommendation: str = ""

    @field_validator("id", "category", "subcategory")
    @classmethod
    def _strip_names(cls, v: str) -> str:
        return v.strip()

    @field_validator("id", "category", "pattern")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v.strip():
            msg = "must not be empty"
            raise ValueError(msg)
        return v

    @field_validator("severity", mode="before")
    @classmethod
    def _lower_severity(cls, v: object) -> object:
        return v.lower() if isinstance(v, str) else v

    @property
    def resolved_subcategory(self) -> str:
        return self.subcategory or self.category
